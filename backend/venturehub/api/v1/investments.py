"""Investment link endpoint"""
from fastapi import APIRouter, Depends, Response

from venturehub.api.deps import get_current_user, get_records
from venturehub.models.user import User
from venturehub.schemas.market import InvestmentResponse, RecordInvestmentRequest
from venturehub.services.records import RecordService

router = APIRouter()


@router.post("", response_model=InvestmentResponse)
async def record_investment(
    request: RecordInvestmentRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    records: RecordService = Depends(get_records),
):
    """Remember that the caller has acquired shares of a venture (balances stay on-chain)"""
    investment, created = await records.record_investment(current_user.id, request.venture_id)
    response.status_code = 201 if created else 200
    return investment
