"""Marketplace listing model"""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from venturehub.models.database import Base, Uint256


class ListingStatus(str, enum.Enum):
    OPEN = "open"
    SOLD = "sold"
    CANCELLED = "cancelled"


class Listing(Base):
    """Marketplace offer mirrored from the ledger"""
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    listing_onchain_id = Column(Uint256, unique=True, nullable=False, index=True)
    venture_id = Column(Integer, ForeignKey("ventures.id"), nullable=False, index=True)
    seller_address = Column(String(42), nullable=False, index=True)
    share_token_address = Column(String(42), nullable=False)
    amount = Column(Uint256, nullable=False)
    price_per_share = Column(Uint256, nullable=False)
    status = Column(String(20), nullable=False, default=ListingStatus.OPEN.value)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    venture = relationship("Venture", back_populates="listings")

    def can_transition_to(self, status: ListingStatus) -> bool:
        """Only open listings move, and only forward"""
        return self.status == ListingStatus.OPEN.value and status != ListingStatus.OPEN

    def __repr__(self):
        return f"<Listing {self.listing_onchain_id} ({self.status})>"
