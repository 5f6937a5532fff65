"""Gasless voting endpoint"""
from fastapi import APIRouter, Depends

from venturehub.api.deps import get_current_user, get_relay
from venturehub.models.user import User
from venturehub.schemas.common import TransactionResponse
from venturehub.schemas.governance import GaslessVoteRequest
from venturehub.services.relay import RelayOrchestrator

router = APIRouter()


@router.post("/vote-gasless", response_model=TransactionResponse)
async def vote_gasless(
    request: GaslessVoteRequest,
    current_user: User = Depends(get_current_user),
    relay: RelayOrchestrator = Depends(get_relay),
):
    """Relay a voter-signed ballot; the operator pays the gas"""
    result = await relay.relay_gasless_vote(
        request.venture_id,
        request.proposal_id,
        request.support,
        request.v,
        request.r,
        request.s,
    )
    return TransactionResponse(
        message="Your vote has been cast on the blockchain",
        transaction_hash=result.transaction_hash,
    )
