"""Venture API endpoints"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, UploadFile
from typing import List, Optional

from venturehub.api.deps import get_current_user, get_reader, get_relay, require_admin
from venturehub.models.user import User
from venturehub.schemas.common import TransactionResponse
from venturehub.schemas.venture import (
    CreateVentureResponse,
    DashboardResponse,
    ProposalStatusResponse,
    SetPriceRequest,
    ShareholderResponse,
    VentureResponse,
    VentureStatsResponse,
    VentureSummary,
)
from venturehub.services.aggregation import AggregationReader, ProposalView, Shareholder
from venturehub.services.relay import RelayOrchestrator, VentureDraft
from venturehub.services.units import FIAT_DECIMALS, SHARE_DECIMALS, parse_units

router = APIRouter()


def _parse_amount(field: str, value: str, decimals: int) -> int:
    try:
        return parse_units(value, decimals)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"{field}: {e}")


def _shareholder_to_response(holder: Shareholder) -> ShareholderResponse:
    return ShareholderResponse(
        address=holder.address,
        full_name=holder.full_name,
        role=holder.role,
        shares_owned=holder.balance,
    )


def _proposal_to_response(view: ProposalView) -> ProposalStatusResponse:
    p = view.proposal
    tally = view.tally
    return ProposalStatusResponse(
        id=p.id,
        proposal_onchain_id=p.proposal_onchain_id,
        proposer_id=p.proposer_id,
        proposal_type=p.proposal_type,
        title=p.title,
        description=p.description,
        transaction_hash=p.transaction_hash,
        created_at=p.created_at,
        hydrated=view.hydrated,
        status=view.status,
        votes_for=tally.votes_for if tally else None,
        votes_against=tally.votes_against if tally else None,
        votes_abstain=tally.votes_abstain if tally else None,
        quorum=tally.quorum if tally else None,
        quorum_reached=tally.quorum_reached if tally else None,
    )


@router.post("", response_model=CreateVentureResponse, status_code=201)
async def create_venture(
    name: str = Form(...),
    industry: str = Form(...),
    mission: str = Form(...),
    team_info: Optional[str] = Form(None),
    fundraising_goal: str = Form(...),
    total_shares: str = Form(...),
    logo: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    relay: RelayOrchestrator = Depends(get_relay),
):
    """Pin venture content, create the share token and ecosystem, then store the venture"""
    draft = VentureDraft(
        name=name,
        industry=industry,
        mission=mission,
        team_info=team_info,
        fundraising_goal=_parse_amount("fundraising_goal", fundraising_goal, FIAT_DECIMALS),
        total_shares=_parse_amount("total_shares", total_shares, SHARE_DECIMALS),
        logo=await logo.read(),
        logo_filename=logo.filename or "logo",
        logo_content_type=logo.content_type or "application/octet-stream",
    )
    try:
        result = await relay.create_venture(current_user.id, draft)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return CreateVentureResponse(
        message="Venture created successfully",
        venture_id=result.venture_id,
        record_id=result.record_id,
        token_address=result.token_address,
        transaction_hash=result.transaction_hash,
    )


@router.get("", response_model=List[VentureSummary])
async def list_ventures(
    current_user: User = Depends(get_current_user),
    reader: AggregationReader = Depends(get_reader),
):
    """List all ventures, newest first"""
    return await reader.list_ventures()


@router.get("/{venture_id}", response_model=VentureResponse)
async def get_venture(
    venture_id: int = Path(...),
    current_user: User = Depends(get_current_user),
    reader: AggregationReader = Depends(get_reader),
):
    return await reader.get_venture(venture_id)


@router.get("/{venture_id}/stats", response_model=VentureStatsResponse)
async def get_venture_stats(
    venture_id: int = Path(...),
    current_user: User = Depends(get_current_user),
    reader: AggregationReader = Depends(get_reader),
):
    """Live sale progress and price from the sale treasury"""
    stats = await reader.venture_stats(venture_id)
    return VentureStatsResponse(
        venture_id=stats.venture.id,
        shares_sold=stats.shares_sold,
        price_per_share=stats.price_per_share,
        total_shares_for_sale=stats.total_shares_for_sale,
        total_shares=stats.venture.total_shares,
        initial_price_per_share=stats.venture.initial_price_per_share,
        valuation=stats.valuation,
    )


@router.get("/{venture_id}/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    venture_id: int = Path(...),
    current_user: User = Depends(get_current_user),
    reader: AggregationReader = Depends(get_reader),
):
    """Venture, caller stake, treasury snapshot, live proposals and shareholders"""
    dashboard = await reader.dashboard(venture_id, current_user.id)
    return DashboardResponse(
        venture=VentureResponse.model_validate(dashboard.venture),
        shares_owned=dashboard.shares_owned,
        treasury_balance=dashboard.treasury_balance,
        price_per_share=dashboard.price_per_share,
        valuation=dashboard.valuation,
        proposals=[_proposal_to_response(view) for view in dashboard.proposals],
        shareholders=[_shareholder_to_response(h) for h in dashboard.shareholders],
    )


@router.get("/{venture_id}/shareholders", response_model=List[ShareholderResponse])
async def get_shareholders(
    venture_id: int = Path(...),
    current_user: User = Depends(get_current_user),
    reader: AggregationReader = Depends(get_reader),
):
    """Current holders of the venture's share token, largest first"""
    holders = await reader.shareholders(venture_id)
    return [_shareholder_to_response(h) for h in holders]


@router.post("/{venture_id}/price", response_model=TransactionResponse)
async def set_share_price(
    request: SetPriceRequest,
    venture_id: int = Path(...),
    admin: User = Depends(require_admin),
    relay: RelayOrchestrator = Depends(get_relay),
):
    """Set the sale treasury price (admin only)"""
    price = _parse_amount("new_price", request.new_price, FIAT_DECIMALS)
    result = await relay.set_share_price(venture_id, price)
    return TransactionResponse(
        message=f"Share price updated to {request.new_price}",
        transaction_hash=result.transaction_hash,
    )
