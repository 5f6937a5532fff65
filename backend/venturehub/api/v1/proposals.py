"""Governance proposal relay endpoints"""
from fastapi import APIRouter, Depends, Path

from venturehub.api.deps import get_current_user, get_relay
from venturehub.models.user import User
from venturehub.schemas.common import TransactionResponse
from venturehub.schemas.governance import CreateProposalRequest, ProposalCreatedResponse
from venturehub.services.relay import RelayOrchestrator

router = APIRouter()


@router.post("", response_model=ProposalCreatedResponse, status_code=201)
async def create_proposal(
    request: CreateProposalRequest,
    current_user: User = Depends(get_current_user),
    relay: RelayOrchestrator = Depends(get_relay),
):
    """Submit a proposal through the operator; the caller is recorded as proposer"""
    result = await relay.relay_proposal(
        current_user.id,
        request.venture_id,
        request.title,
        request.description,
        request.proposal_type,
    )
    return ProposalCreatedResponse(
        message="Proposal submitted successfully",
        proposal_id=result.proposal_id,
        record_id=result.record_id,
        transaction_hash=result.transaction_hash,
    )


@router.post("/{proposal_id}/queue", response_model=TransactionResponse)
async def queue_proposal(
    proposal_id: int = Path(...),
    current_user: User = Depends(get_current_user),
    relay: RelayOrchestrator = Depends(get_relay),
):
    """Queue a succeeded proposal in the timelock"""
    result = await relay.queue_proposal(proposal_id)
    return TransactionResponse(message="Proposal queued", transaction_hash=result.transaction_hash)


@router.post("/{proposal_id}/execute", response_model=TransactionResponse)
async def execute_proposal(
    proposal_id: int = Path(...),
    current_user: User = Depends(get_current_user),
    relay: RelayOrchestrator = Depends(get_relay),
):
    result = await relay.execute_proposal(proposal_id)
    return TransactionResponse(message="Proposal executed", transaction_hash=result.transaction_hash)
