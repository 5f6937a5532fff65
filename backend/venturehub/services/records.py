"""Off-chain witness records reported by the client after its own ledger actions"""
from typing import List, Tuple

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from web3 import Web3

from venturehub.errors import ConflictingState, Forbidden, NotFound, PrecursorMissing
from venturehub.models.listing import Listing, ListingStatus
from venturehub.models.user import User
from venturehub.models.venture import Investment, Venture

logger = structlog.get_logger()


def checksum(address: str) -> str:
    """Checksummed form of an address; ValueError if it is not one"""
    if not Web3.is_address(address):
        raise ValueError(f"Invalid address: {address}")
    return Web3.to_checksum_address(address)


class RecordService:
    """Wallet links, investment links and marketplace listings"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _flush_unique(self, conflict: str) -> None:
        """Flush pending writes; a unique-constraint violation becomes ConflictingState"""
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictingState(conflict)

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user

    async def link_wallet(self, user_id: int, address: str) -> User:
        """
        Attach a wallet to a user. A user links at most one wallet, and a
        wallet belongs to at most one user; relinking the same wallet is a no-op.
        """
        address = checksum(address)
        user = await self.get_user(user_id)

        if user.wallet_address:
            if user.wallet_address.lower() == address.lower():
                return user
            raise ConflictingState(f"User {user_id} already has a linked wallet")

        result = await self.db.execute(
            select(User).where(func.lower(User.wallet_address) == address.lower())
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictingState(f"Wallet {address} is already linked to another account")

        user.wallet_address = address
        await self._flush_unique(f"Wallet {address} is already linked to another account")
        logger.info("Wallet linked", user_id=user_id, wallet=address)
        return user

    async def record_investment(self, user_id: int, venture_id: int) -> Tuple[Investment, bool]:
        """Insert the (user, venture) witness if absent. Returns (link, created)."""
        if await self.db.get(Venture, venture_id) is None:
            raise NotFound(f"Venture {venture_id} not found")

        result = await self.db.execute(
            select(Investment).where(
                Investment.user_id == user_id,
                Investment.venture_id == venture_id,
            )
        )
        investment = result.scalar_one_or_none()
        if investment is not None:
            return investment, False

        investment = Investment(user_id=user_id, venture_id=venture_id)
        self.db.add(investment)
        try:
            await self.db.flush()
        except IntegrityError:
            # A concurrent request inserted the same link first
            await self.db.rollback()
            result = await self.db.execute(
                select(Investment).where(
                    Investment.user_id == user_id,
                    Investment.venture_id == venture_id,
                )
            )
            return result.scalar_one(), False
        logger.info("Investment recorded", user_id=user_id, venture_id=venture_id)
        return investment, True

    async def record_listing(
        self,
        user_id: int,
        listing_onchain_id: int,
        venture_id: int,
        amount: int,
        price_per_share: int,
    ) -> Listing:
        user = await self.get_user(user_id)
        if not user.wallet_address:
            raise PrecursorMissing("A linked wallet is required to list shares")

        venture = await self.db.get(Venture, venture_id)
        if venture is None:
            raise NotFound(f"Venture {venture_id} not found")

        result = await self.db.execute(
            select(Listing).where(Listing.listing_onchain_id == listing_onchain_id)
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictingState(f"Listing {listing_onchain_id} is already recorded")

        listing = Listing(
            listing_onchain_id=listing_onchain_id,
            venture_id=venture.id,
            seller_address=user.wallet_address,
            share_token_address=venture.share_token_address,
            amount=amount,
            price_per_share=price_per_share,
            status=ListingStatus.OPEN.value,
        )
        self.db.add(listing)
        await self._flush_unique(f"Listing {listing_onchain_id} is already recorded")
        logger.info("Listing recorded", listing_id=listing_onchain_id, venture_id=venture_id)
        return listing

    async def update_listing_status(
        self, user_id: int, listing_onchain_id: int, status: ListingStatus
    ) -> Listing:
        """Seller moves an open listing to sold or cancelled; listings never reopen"""
        status = ListingStatus(status)
        if status == ListingStatus.OPEN:
            raise ConflictingState("Listings cannot be reopened")

        result = await self.db.execute(
            select(Listing).where(Listing.listing_onchain_id == listing_onchain_id)
        )
        listing = result.scalar_one_or_none()
        if listing is None:
            raise NotFound(f"Listing {listing_onchain_id} not found")

        user = await self.get_user(user_id)
        if not user.wallet_address or user.wallet_address.lower() != listing.seller_address.lower():
            raise Forbidden(f"Only the seller can update listing {listing_onchain_id}")

        if listing.status == status.value:
            return listing
        if not listing.can_transition_to(status):
            raise ConflictingState(
                f"Listing {listing_onchain_id} is {listing.status} and cannot become {status.value}"
            )

        listing.status = status.value
        await self.db.flush()
        logger.info("Listing status updated", listing_id=listing_onchain_id, status=status.value)
        return listing

    async def open_listings(self) -> List[Tuple[Listing, Venture]]:
        result = await self.db.execute(
            select(Listing, Venture)
            .join(Venture, Listing.venture_id == Venture.id)
            .where(Listing.status == ListingStatus.OPEN.value)
            .order_by(Listing.created_at.desc(), Listing.id.desc())
        )
        return [(listing, venture) for listing, venture in result.all()]
