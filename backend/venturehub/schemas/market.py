"""Marketplace and investment-link schemas"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from venturehub.models.listing import ListingStatus
from venturehub.schemas.common import BigInt


class RecordInvestmentRequest(BaseModel):
    venture_id: int


class InvestmentResponse(BaseModel):
    id: int
    user_id: int
    venture_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RecordListingRequest(BaseModel):
    listing_onchain_id: int = Field(..., ge=0)
    venture_id: int
    amount: int = Field(..., gt=0)  # 18-decimal share units
    price_per_share: int = Field(..., gt=0)  # 6-decimal fiat units


class UpdateListingRequest(BaseModel):
    status: ListingStatus


class ListingResponse(BaseModel):
    listing_onchain_id: BigInt
    venture_id: int
    seller_address: str
    share_token_address: str
    amount: BigInt
    price_per_share: BigInt
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OpenListingResponse(ListingResponse):
    venture_name: str
    venture_logo: str
