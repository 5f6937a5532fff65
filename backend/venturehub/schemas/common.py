"""Shared schema types"""
from typing import Annotated

from pydantic import BaseModel, PlainSerializer

# On-chain integers exceed the JSON safe-integer range, so they go out as strings
BigInt = Annotated[int, PlainSerializer(lambda v: str(v), return_type=str, when_used="json")]


class MessageResponse(BaseModel):
    message: str


class TransactionResponse(BaseModel):
    message: str
    transaction_hash: str
