"""User endpoints"""
from fastapi import APIRouter, Depends, HTTPException

from venturehub.api.deps import get_current_user, get_records
from venturehub.models.user import User
from venturehub.schemas.user import LinkWalletRequest, UserResponse
from venturehub.services.records import RecordService

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/link-wallet", response_model=UserResponse)
async def link_wallet(
    request: LinkWalletRequest,
    current_user: User = Depends(get_current_user),
    records: RecordService = Depends(get_records),
):
    """Link a wallet address to the caller (once per user, once per wallet)"""
    try:
        return await records.link_wallet(current_user.id, request.wallet_address)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
