"""Portfolio endpoint"""
from fastapi import APIRouter, Depends
from typing import List

from venturehub.api.deps import get_current_user, get_reader
from venturehub.models.user import User
from venturehub.schemas.portfolio import HoldingResponse
from venturehub.schemas.venture import VentureSummary
from venturehub.services.aggregation import AggregationReader

router = APIRouter()


@router.get("", response_model=List[HoldingResponse])
async def get_portfolio(
    current_user: User = Depends(get_current_user),
    reader: AggregationReader = Depends(get_reader),
):
    """Ventures the caller's wallet currently holds shares in, valued at the live price"""
    holdings = await reader.portfolio(current_user.id)
    return [
        HoldingResponse(
            venture=VentureSummary.model_validate(h.venture),
            shares_owned=h.shares_owned,
            current_price=h.current_price,
            current_value=h.current_value,
            initial_price=h.initial_price,
        )
        for h in holdings
    ]
