"""
Aggregation reader.

Merges index-store rows with live ledger reads. Balances, prices, proposal
status and tallies are never taken from the database; a failing live read
only affects the item it belongs to.
"""
import asyncio
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from venturehub.config import get_settings
from venturehub.errors import NotFound, PartialHydrationFailure
from venturehub.models.governance import Proposal
from venturehub.models.user import User
from venturehub.models.venture import Venture
from venturehub.services.chain_client import ChainClient
from venturehub.services.gather import gather_partial
from venturehub.services.units import share_value, short_address

logger = structlog.get_logger()
settings = get_settings()

SHARE_ABI = "VentureShare"
TREASURY_ABI = "SaleTreasury"
DAO_ABI = "VentureDAO"
ERC20_ABI = "ERC20"

EXTERNAL_ROLE = "external"


class ProposalState(IntEnum):
    """Governor proposal states, in contract enum order"""
    PENDING = 0
    ACTIVE = 1
    CANCELED = 2
    DEFEATED = 3
    SUCCEEDED = 4
    QUEUED = 5
    EXPIRED = 6
    EXECUTED = 7


@dataclass
class Holding:
    venture: Venture
    shares_owned: int
    current_price: int
    current_value: int

    @property
    def initial_price(self) -> int:
        return self.venture.initial_price_per_share


@dataclass
class ProposalTally:
    state: ProposalState
    votes_for: int
    votes_against: int
    votes_abstain: int
    snapshot: int
    quorum: int

    @property
    def quorum_reached(self) -> bool:
        return self.votes_for + self.votes_against + self.votes_abstain >= self.quorum


@dataclass
class ProposalView:
    """Stored proposal plus its live tally; tally is None when it could not be read"""
    proposal: Proposal
    tally: Optional[ProposalTally] = None

    @property
    def hydrated(self) -> bool:
        return self.tally is not None

    @property
    def status(self) -> Optional[str]:
        return self.tally.state.name.lower() if self.tally else None


@dataclass
class Shareholder:
    address: str
    balance: int
    full_name: str
    role: str
    user_id: Optional[int] = None


@dataclass
class Dashboard:
    venture: Venture
    shares_owned: int
    treasury_balance: int
    price_per_share: int
    proposals: List[ProposalView]
    shareholders: List[Shareholder]
    failures: List[PartialHydrationFailure] = field(default_factory=list)

    @property
    def valuation(self) -> int:
        return share_value(self.venture.total_shares, self.price_per_share)


@dataclass
class VentureStats:
    venture: Venture
    shares_sold: int
    price_per_share: int
    total_shares_for_sale: int

    @property
    def valuation(self) -> int:
        return share_value(self.venture.total_shares, self.price_per_share)


class AggregationReader:
    """Read-side views combining stored rows with live ledger state"""

    def __init__(self, db: AsyncSession, chain: ChainClient):
        self.db = db
        self.chain = chain

    async def list_ventures(self) -> List[Venture]:
        result = await self.db.execute(select(Venture).order_by(Venture.created_at.desc(), Venture.id.desc()))
        return list(result.scalars().all())

    async def get_venture(self, venture_id: int) -> Venture:
        venture = await self.db.get(Venture, venture_id)
        if venture is None:
            raise NotFound(f"Venture {venture_id} not found")
        return venture

    async def _wallet_of(self, user_id: int) -> Optional[str]:
        user = await self.db.get(User, user_id)
        return user.wallet_address if user else None

    async def _balance(self, token: str, holder: str) -> int:
        return await self.chain.read(token, SHARE_ABI, "balanceOf", holder)

    async def _price(self, venture: Venture) -> int:
        return await self.chain.read(venture.sale_treasury_address, TREASURY_ABI, "pricePerShare")

    # Portfolio

    async def portfolio(self, user_id: int) -> List[Holding]:
        """Every known venture the caller's wallet holds a positive live balance in"""
        wallet = await self._wallet_of(user_id)
        if not wallet:
            return []

        ventures = await self.list_ventures()
        balances = await gather_partial(
            ventures,
            lambda v: self._balance(v.share_token_address, wallet),
            key=lambda v: v.id,
            label="venture balance",
        )
        held = [(venture, balance) for venture, balance in balances.succeeded if balance > 0]

        prices = await gather_partial(
            held,
            lambda item: self._price(item[0]),
            key=lambda item: item[0].id,
            label="venture price",
        )

        holdings = [
            Holding(
                venture=venture,
                shares_owned=balance,
                current_price=price,
                current_value=share_value(balance, price),
            )
            for (venture, balance), price in prices.succeeded
        ]
        logger.info(
            "Portfolio hydrated",
            user_id=user_id,
            holdings=len(holdings),
            failures=len(balances.failed) + len(prices.failed),
        )
        return holdings

    # Dashboard

    async def _proposal_tally(self, venture: Venture, proposal: Proposal) -> ProposalTally:
        dao = venture.dao_address
        proposal_id = proposal.proposal_onchain_id
        state, votes, snapshot = await asyncio.gather(
            self.chain.read(dao, DAO_ABI, "state", proposal_id),
            self.chain.read(dao, DAO_ABI, "proposalVotes", proposal_id),
            self.chain.read(dao, DAO_ABI, "proposalSnapshot", proposal_id),
        )
        quorum = await self.chain.read(dao, DAO_ABI, "quorum", snapshot)
        against, for_, abstain = votes
        return ProposalTally(
            state=ProposalState(state),
            votes_for=for_,
            votes_against=against,
            votes_abstain=abstain,
            snapshot=snapshot,
            quorum=quorum,
        )

    async def _proposals(self, venture_id: int) -> List[Proposal]:
        result = await self.db.execute(
            select(Proposal)
            .where(Proposal.venture_id == venture_id)
            .order_by(Proposal.created_at.desc(), Proposal.id.desc())
        )
        return list(result.scalars().all())

    async def dashboard(self, venture_id: int, user_id: int) -> Dashboard:
        venture = await self.get_venture(venture_id)
        wallet = await self._wallet_of(user_id)

        async def caller_balance() -> int:
            if not wallet:
                return 0
            return await self._balance(venture.share_token_address, wallet)

        shares_owned, proposals, treasury_balance, price = await asyncio.gather(
            caller_balance(),
            self._proposals(venture.id),
            self.chain.read(
                settings.payment_token_address, ERC20_ABI, "balanceOf", venture.sale_treasury_address
            ),
            self._price(venture),
        )

        tallies = await gather_partial(
            proposals,
            lambda p: self._proposal_tally(venture, p),
            key=lambda p: p.proposal_onchain_id,
            label="proposal",
        )
        tally_by_id: Dict[int, ProposalTally] = {p.id: tally for p, tally in tallies.succeeded}
        views = [ProposalView(proposal=p, tally=tally_by_id.get(p.id)) for p in proposals]

        shareholders, holder_failures = await self._resolve_shareholders(venture)

        return Dashboard(
            venture=venture,
            shares_owned=shares_owned,
            treasury_balance=treasury_balance,
            price_per_share=price,
            proposals=views,
            shareholders=shareholders,
            failures=tallies.failed + holder_failures,
        )

    # Shareholders

    async def shareholders(self, venture_id: int) -> List[Shareholder]:
        venture = await self.get_venture(venture_id)
        if not venture.share_token_address:
            raise NotFound(f"Venture {venture_id} has no share token")
        holders, _ = await self._resolve_shareholders(venture)
        return holders

    async def _resolve_shareholders(self, venture: Venture):
        """
        Current holders from the full Transfer history of the share token.

        Addresses whose live balance is zero are dropped even though they
        appear in history. Ties in balance are ordered by address.
        """
        token = venture.share_token_address
        recipients = await self.chain.get_transfer_recipients(token)
        balances = await gather_partial(
            recipients,
            lambda address: self._balance(token, address),
            label="shareholder balance",
        )
        current = [(address, balance) for address, balance in balances.succeeded if balance > 0]
        if not current:
            return [], balances.failed

        result = await self.db.execute(
            select(User).where(
                func.lower(User.wallet_address).in_([address.lower() for address, _ in current])
            )
        )
        users = {user.wallet_address.lower(): user for user in result.scalars().all()}

        holders = []
        for address, balance in current:
            user = users.get(address.lower())
            holders.append(Shareholder(
                address=address,
                balance=balance,
                full_name=user.full_name if user else short_address(address),
                role=user.role if user else EXTERNAL_ROLE,
                user_id=user.id if user else None,
            ))
        holders.sort(key=lambda h: (-h.balance, h.address.lower()))
        return holders, balances.failed

    # Stats

    async def venture_stats(self, venture_id: int) -> VentureStats:
        venture = await self.get_venture(venture_id)
        treasury = venture.sale_treasury_address
        shares_sold, price, for_sale = await asyncio.gather(
            self.chain.read(treasury, TREASURY_ABI, "sharesSold"),
            self.chain.read(treasury, TREASURY_ABI, "pricePerShare"),
            self.chain.read(treasury, TREASURY_ABI, "totalSharesForSale"),
        )
        return VentureStats(
            venture=venture,
            shares_sold=shares_sold,
            price_per_share=price,
            total_shares_for_sale=for_sale,
        )
