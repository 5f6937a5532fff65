"""Venture schemas"""
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List

from venturehub.schemas.common import BigInt


class VentureSummary(BaseModel):
    """Venture row as listed in overviews"""
    id: int
    venture_nft_id: BigInt
    name: str
    industry: str
    mission: str
    logo_url: str
    share_token_address: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VentureResponse(VentureSummary):
    founder_id: int
    team_info: Optional[str] = None
    metadata_uri: str
    vault_address: str
    sale_treasury_address: str
    dao_address: str
    timelock_address: str
    fundraising_goal: BigInt  # 6-decimal fiat units
    total_shares: BigInt  # 18-decimal share units
    initial_price_per_share: BigInt
    creation_tx_hash: str


class CreateVentureResponse(BaseModel):
    message: str
    venture_id: BigInt  # ledger-assigned
    record_id: int
    token_address: str
    transaction_hash: str


class VentureStatsResponse(BaseModel):
    venture_id: int
    shares_sold: BigInt
    price_per_share: BigInt
    total_shares_for_sale: BigInt
    total_shares: BigInt
    initial_price_per_share: BigInt
    valuation: BigInt


class SetPriceRequest(BaseModel):
    new_price: str  # decimal, e.g. "1.75"


class ShareholderResponse(BaseModel):
    address: str
    full_name: str
    role: str
    shares_owned: BigInt


class ProposalStatusResponse(BaseModel):
    """Stored proposal with its live state; status is null when it could not be read"""
    id: int
    proposal_onchain_id: BigInt
    proposer_id: int
    proposal_type: str
    title: str
    description: str
    transaction_hash: str
    created_at: Optional[datetime] = None
    hydrated: bool
    status: Optional[str] = None
    votes_for: Optional[BigInt] = None
    votes_against: Optional[BigInt] = None
    votes_abstain: Optional[BigInt] = None
    quorum: Optional[BigInt] = None
    quorum_reached: Optional[bool] = None


class DashboardResponse(BaseModel):
    venture: VentureResponse
    shares_owned: BigInt
    treasury_balance: BigInt
    price_per_share: BigInt
    valuation: BigInt
    proposals: List[ProposalStatusResponse]
    shareholders: List[ShareholderResponse]
