"""Marketplace listing endpoints"""
from fastapi import APIRouter, Depends, Path
from typing import List

from venturehub.api.deps import get_current_user, get_records
from venturehub.models.user import User
from venturehub.schemas.market import (
    ListingResponse,
    OpenListingResponse,
    RecordListingRequest,
    UpdateListingRequest,
)
from venturehub.services.records import RecordService

router = APIRouter()


@router.post("/listings", response_model=ListingResponse, status_code=201)
async def record_listing(
    request: RecordListingRequest,
    current_user: User = Depends(get_current_user),
    records: RecordService = Depends(get_records),
):
    """Record a listing the caller created on-chain"""
    return await records.record_listing(
        current_user.id,
        request.listing_onchain_id,
        request.venture_id,
        request.amount,
        request.price_per_share,
    )


@router.put("/listings/{listing_onchain_id}", response_model=ListingResponse)
async def update_listing_status(
    request: UpdateListingRequest,
    listing_onchain_id: int = Path(...),
    current_user: User = Depends(get_current_user),
    records: RecordService = Depends(get_records),
):
    """Mark the caller's listing sold or cancelled"""
    return await records.update_listing_status(current_user.id, listing_onchain_id, request.status)


@router.get("/listings", response_model=List[OpenListingResponse])
async def list_open_listings(
    current_user: User = Depends(get_current_user),
    records: RecordService = Depends(get_records),
):
    rows = await records.open_listings()
    return [
        OpenListingResponse(
            **ListingResponse.model_validate(listing).model_dump(),
            venture_name=venture.name,
            venture_logo=venture.logo_url,
        )
        for listing, venture in rows
    ]
