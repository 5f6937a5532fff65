"""Venture and investment-link models"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from venturehub.models.database import Base, Uint256


class Venture(Base):
    """Venture created by the factory.

    Inserted once, after both creation transactions are confirmed, with every
    ecosystem address taken from the factory's events.
    """
    __tablename__ = "ventures"

    id = Column(Integer, primary_key=True, autoincrement=True)
    venture_nft_id = Column(Uint256, unique=True, nullable=False, index=True)
    founder_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    industry = Column(String(100), nullable=False)
    mission = Column(Text, nullable=False)
    team_info = Column(Text, nullable=True)
    logo_url = Column(String(255), nullable=False)
    metadata_uri = Column(String(255), nullable=False)

    share_token_address = Column(String(42), unique=True, nullable=False, index=True)
    vault_address = Column(String(42), nullable=False)
    sale_treasury_address = Column(String(42), nullable=False)
    dao_address = Column(String(42), nullable=False)
    timelock_address = Column(String(42), nullable=False)

    fundraising_goal = Column(Uint256, nullable=False)  # 6-decimal fiat units
    total_shares = Column(Uint256, nullable=False)  # 18-decimal share units
    initial_price_per_share = Column(Uint256, nullable=False)  # fiat units per whole share
    creation_tx_hash = Column(String(66), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    founder = relationship("User", back_populates="ventures")
    proposals = relationship("Proposal", back_populates="venture", lazy="dynamic")
    investments = relationship("Investment", back_populates="venture", lazy="dynamic")
    listings = relationship("Listing", back_populates="venture", lazy="dynamic")

    def __repr__(self):
        return f"<Venture {self.name} (NFT: {self.venture_nft_id})>"


class Investment(Base):
    """Witness that a user has held shares of a venture.

    Never stores a balance; the authoritative balance is always read live.
    """
    __tablename__ = "investments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    venture_id = Column(Integer, ForeignKey("ventures.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="investments")
    venture = relationship("Venture", back_populates="investments")

    __table_args__ = (
        UniqueConstraint("user_id", "venture_id", name="uq_investment_user_venture"),
    )

    def __repr__(self):
        return f"<Investment user={self.user_id} venture={self.venture_id}>"
