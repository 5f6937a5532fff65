"""Governance relay schemas"""
from pydantic import BaseModel, Field

from venturehub.models.governance import ProposalType
from venturehub.schemas.common import BigInt

BYTES32_PATTERN = r"^0x[0-9a-fA-F]{64}$"


class CreateProposalRequest(BaseModel):
    venture_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    proposal_type: ProposalType = ProposalType.GENERAL


class ProposalCreatedResponse(BaseModel):
    message: str
    proposal_id: BigInt
    record_id: int
    transaction_hash: str


class GaslessVoteRequest(BaseModel):
    """Signature components produced by the voter; verified by the DAO, not here"""
    venture_id: int
    proposal_id: int = Field(..., ge=0)
    support: int = Field(..., ge=0, le=2)  # 0 against, 1 for, 2 abstain
    v: int = Field(..., ge=0, le=255)
    r: str = Field(..., pattern=BYTES32_PATTERN)
    s: str = Field(..., pattern=BYTES32_PATTERN)
