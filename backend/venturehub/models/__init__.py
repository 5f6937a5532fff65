"""Database models"""
from venturehub.models.database import Base, Uint256, get_db
from venturehub.models.user import User, UserRole
from venturehub.models.venture import Venture, Investment
from venturehub.models.governance import Proposal, ProposalType
from venturehub.models.listing import Listing, ListingStatus

__all__ = [
    "Base",
    "Uint256",
    "get_db",
    "User",
    "UserRole",
    "Venture",
    "Investment",
    "Proposal",
    "ProposalType",
    "Listing",
    "ListingStatus",
]
