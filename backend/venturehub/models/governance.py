"""Governance models"""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship

from venturehub.models.database import Base, Uint256


class ProposalType(str, enum.Enum):
    GENERAL = "general"
    DISTRIBUTE_FUNDS = "distribute_funds"


class Proposal(Base):
    """Governance proposal relayed by the operator.

    Status and tallies are never stored; they are read live from the DAO.
    """
    __tablename__ = "proposals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    venture_id = Column(Integer, ForeignKey("ventures.id"), nullable=False, index=True)
    proposer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    onchain_proposer = Column(String(42), nullable=False)
    proposal_onchain_id = Column(Uint256, unique=True, nullable=False, index=True)
    proposal_type = Column(String(30), nullable=False)
    title = Column(String(255), nullable=False)
    # Exact string submitted on-chain; its hash identifies the proposal for queue/execute
    description = Column(Text, nullable=False)
    targets = Column(JSON, nullable=False)
    values = Column(JSON, nullable=False)
    calldatas = Column(JSON, nullable=False)
    transaction_hash = Column(String(66), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    venture = relationship("Venture", back_populates="proposals")

    def __repr__(self):
        return f"<Proposal {self.proposal_onchain_id} (venture {self.venture_id})>"
