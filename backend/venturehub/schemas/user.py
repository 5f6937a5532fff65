"""User schemas"""
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class LinkWalletRequest(BaseModel):
    wallet_address: str


class UserResponse(BaseModel):
    id: int
    full_name: str
    email: str
    role: str
    wallet_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
