"""
Relay orchestrator.

Runs privileged, multi-transaction ledger workflows with the operator account
on behalf of callers who hold no operator key. Off-chain rows are written only
after every transaction of a workflow is confirmed and its expected event has
been found in the receipt.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from web3 import Web3

from venturehub.config import get_settings
from venturehub.errors import (
    CriticalChainStateMismatch,
    ExternalServiceFailure,
    NotFound,
    PrecursorMissing,
)
from venturehub.models.governance import Proposal, ProposalType
from venturehub.models.user import User
from venturehub.models.venture import Venture
from venturehub.services.chain_client import ChainClient
from venturehub.services.content_store import ContentStore
from venturehub.services.sequencer import TransactionSequencer
from venturehub.services.units import (
    initial_price_per_share,
    shares_for_sale,
    token_name,
    token_symbol,
)

logger = structlog.get_logger()
settings = get_settings()

FACTORY_ABI = "VentureFactory"
DAO_ABI = "VentureDAO"
TREASURY_ABI = "SaleTreasury"

EMPTY_CALLDATA = "0x"


@dataclass
class VentureDraft:
    """Caller-supplied venture fields, amounts already in base units"""
    name: str
    industry: str
    mission: str
    team_info: Optional[str]
    fundraising_goal: int  # 6-decimal fiat units
    total_shares: int  # 18-decimal share units
    logo: bytes
    logo_filename: str = "logo"
    logo_content_type: str = "application/octet-stream"


@dataclass
class CreateVentureResult:
    venture_id: int
    record_id: int
    token_address: str
    transaction_hash: str


@dataclass
class ProposalResult:
    proposal_id: int
    record_id: int
    transaction_hash: str


@dataclass
class TransactionResult:
    transaction_hash: str


def build_metadata(draft: VentureDraft, logo_url: str) -> Dict[str, Any]:
    """Token metadata document for the venture NFT"""
    return {
        "name": draft.name,
        "description": draft.mission,
        "image": logo_url,
        "attributes": [
            {"trait_type": "Industry", "value": draft.industry},
            {"trait_type": "Team", "value": draft.team_info or ""},
            {"trait_type": "Fundraising Goal (USDC)", "value": str(draft.fundraising_goal)},
        ],
    }


def proposal_description(title: str, description: str) -> str:
    """The exact description string submitted to the DAO"""
    return f"Title: {title}\n\n{description}"


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return Web3.to_bytes(hexstr=value)


class RelayOrchestrator:
    """Privileged ledger workflows; every one runs inside a single nonce reservation"""

    def __init__(
        self,
        db: AsyncSession,
        chain: ChainClient,
        content_store: ContentStore,
        sequencer: TransactionSequencer,
    ):
        self.db = db
        self.chain = chain
        self.content_store = content_store
        self.sequencer = sequencer

    async def _get_venture(self, venture_id: int) -> Venture:
        venture = await self.db.get(Venture, venture_id)
        if venture is None:
            raise NotFound(f"Venture {venture_id} not found")
        return venture

    async def _confirm(self, tx_hash: str, address: str, abi: str, event: str, log) -> Dict[str, Any]:
        """Wait for inclusion and require the expected event from `address`"""
        receipt = await self.chain.wait(tx_hash)
        args = self.chain.find_event(receipt, address, abi, event)
        if args is None:
            log.error("Expected event missing from confirmed transaction", tx_hash=tx_hash, event=event)
            raise CriticalChainStateMismatch(
                f"Transaction {tx_hash} was confirmed but emitted no {event} event"
            )
        return args

    async def create_venture(self, user_id: int, draft: VentureDraft) -> CreateVentureResult:
        """
        Create a venture end to end.

        1. derive price, symbol and token name (ValueError if the amounts
           cannot produce a positive price)
        2. pin logo and metadata
        3. createShareToken at nonce N, require TokenCreated
        4. createVentureEcosystem at nonce N+1, require VentureCreated
        5. insert the Venture row

        Any failure aborts the workflow and no row is written. Nothing is
        retried.
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise PrecursorMissing(f"User {user_id} does not exist")
        if not user.wallet_address:
            raise PrecursorMissing("A linked wallet is required to create a venture")
        founder = user.wallet_address

        sale_shares = shares_for_sale(draft.total_shares)
        price = initial_price_per_share(draft.fundraising_goal, sale_shares)

        log = logger.bind(workflow="create_venture", user_id=user_id, venture=draft.name)

        logo_url = await self.content_store.store(
            draft.logo, draft.logo_filename, draft.logo_content_type
        )
        metadata_uri = await self.content_store.store_json(
            build_metadata(draft, logo_url), f"{draft.name} Metadata"
        )
        log.info("Venture content pinned", logo_url=logo_url, metadata_uri=metadata_uri)

        factory = settings.venture_factory_address

        async with self.sequencer.reserve() as nonces:
            token_tx = await self.chain.send(
                factory,
                FACTORY_ABI,
                "createShareToken",
                [token_name(draft.name), token_symbol(draft.name), draft.total_shares],
                nonces.next(),
            )
            created = await self._confirm(token_tx, factory, FACTORY_ABI, "TokenCreated", log)
            token_address = created["shareToken"]
            log.info("Share token created", token_address=token_address, tx_hash=token_tx)

            try:
                ecosystem_tx = await self.chain.send(
                    factory,
                    FACTORY_ABI,
                    "createVentureEcosystem",
                    [(
                        founder,
                        metadata_uri,
                        draft.total_shares,
                        price,
                        self.chain.operator_address,
                        token_address,
                    )],
                    nonces.next(),
                )
                ecosystem = await self._confirm(
                    ecosystem_tx, factory, FACTORY_ABI, "VentureCreated", log
                )
            except (ExternalServiceFailure, CriticalChainStateMismatch):
                log.error(
                    "Venture ecosystem creation failed; share token left without a venture",
                    token_address=token_address,
                    token_tx=token_tx,
                )
                raise

        venture = Venture(
            venture_nft_id=ecosystem["ventureId"],
            founder_id=user.id,
            name=draft.name,
            industry=draft.industry,
            mission=draft.mission,
            team_info=draft.team_info,
            logo_url=logo_url,
            metadata_uri=metadata_uri,
            share_token_address=token_address,
            vault_address=ecosystem["vault"],
            sale_treasury_address=ecosystem["saleTreasury"],
            dao_address=ecosystem["dao"],
            timelock_address=ecosystem["timelock"],
            fundraising_goal=draft.fundraising_goal,
            total_shares=draft.total_shares,
            initial_price_per_share=price,
            creation_tx_hash=ecosystem_tx,
        )
        self.db.add(venture)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(
                "Venture confirmed on-chain but could not be stored",
                venture_nft_id=ecosystem["ventureId"],
                token_tx=token_tx,
                ecosystem_tx=ecosystem_tx,
                error=str(e),
            )
            raise ExternalServiceFailure(
                f"Venture {ecosystem['ventureId']} was created on-chain but could not be stored: {e}"
            ) from e

        log.info("Venture created", venture_nft_id=venture.venture_nft_id, record_id=venture.id)
        return CreateVentureResult(
            venture_id=venture.venture_nft_id,
            record_id=venture.id,
            token_address=token_address,
            transaction_hash=ecosystem_tx,
        )

    def _proposal_actions(self, venture: Venture, proposal_type: ProposalType):
        if proposal_type == ProposalType.DISTRIBUTE_FUNDS:
            calldata = self.chain.encode_call(
                venture.sale_treasury_address, TREASURY_ABI, "distributeFunds"
            )
            return [venture.sale_treasury_address], ["0"], [calldata]
        return [venture.dao_address], ["0"], [EMPTY_CALLDATA]

    async def relay_proposal(
        self,
        user_id: int,
        venture_id: int,
        title: str,
        description: str,
        proposal_type: ProposalType,
    ) -> ProposalResult:
        """Submit a proposal as the operator and record the caller as its logical proposer"""
        venture = await self._get_venture(venture_id)
        targets, values, calldatas = self._proposal_actions(venture, ProposalType(proposal_type))
        full_description = proposal_description(title, description)
        dao = venture.dao_address

        log = logger.bind(workflow="relay_proposal", user_id=user_id, venture_id=venture_id)

        async with self.sequencer.reserve() as nonces:
            tx_hash = await self.chain.send(
                dao,
                DAO_ABI,
                "propose",
                [targets, [int(v) for v in values], [_to_bytes(c) for c in calldatas], full_description],
                nonces.next(),
            )
            created = await self._confirm(tx_hash, dao, DAO_ABI, "ProposalCreated", log)

        proposal = Proposal(
            venture_id=venture.id,
            proposer_id=user_id,
            onchain_proposer=created["proposer"],
            proposal_onchain_id=created["proposalId"],
            proposal_type=ProposalType(proposal_type).value,
            title=title,
            description=full_description,
            targets=targets,
            values=values,
            calldatas=calldatas,
            transaction_hash=tx_hash,
        )
        self.db.add(proposal)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(
                "Proposal confirmed on-chain but could not be stored",
                proposal_id=created["proposalId"],
                tx_hash=tx_hash,
                error=str(e),
            )
            raise ExternalServiceFailure(
                f"Proposal {created['proposalId']} was created on-chain but could not be stored: {e}"
            ) from e

        log.info("Proposal relayed", proposal_id=proposal.proposal_onchain_id, tx_hash=tx_hash)
        return ProposalResult(
            proposal_id=proposal.proposal_onchain_id,
            record_id=proposal.id,
            transaction_hash=tx_hash,
        )

    async def relay_gasless_vote(
        self,
        venture_id: int,
        proposal_id: int,
        support: int,
        v: int,
        r: str,
        s: str,
    ) -> TransactionResult:
        """Forward a voter's signature to castVoteBySigRaw; the DAO verifies it"""
        venture = await self._get_venture(venture_id)
        dao = venture.dao_address

        async with self.sequencer.reserve() as nonces:
            tx_hash = await self.chain.send(
                dao,
                DAO_ABI,
                "castVoteBySigRaw",
                [proposal_id, support, v, _to_bytes(r), _to_bytes(s)],
                nonces.next(),
            )
            await self.chain.wait(tx_hash)

        logger.info("Gasless vote relayed", venture_id=venture_id, proposal_id=proposal_id, tx_hash=tx_hash)
        return TransactionResult(transaction_hash=tx_hash)

    async def _replay_proposal(self, proposal_record_id: int, action: str, event: str) -> TransactionResult:
        result = await self.db.execute(
            select(Proposal, Venture)
            .join(Venture, Proposal.venture_id == Venture.id)
            .where(Proposal.id == proposal_record_id)
        )
        row = result.first()
        if row is None:
            raise NotFound(f"Proposal {proposal_record_id} not found")
        proposal, venture = row
        dao = venture.dao_address

        log = logger.bind(workflow=f"{action}_proposal", proposal_id=proposal.proposal_onchain_id)
        args = [
            list(proposal.targets),
            [int(v) for v in proposal.values],
            [_to_bytes(c) for c in proposal.calldatas],
            Web3.keccak(text=proposal.description),
        ]

        async with self.sequencer.reserve() as nonces:
            tx_hash = await self.chain.send(dao, DAO_ABI, action, args, nonces.next())
            await self._confirm(tx_hash, dao, DAO_ABI, event, log)

        log.info(f"Proposal {action} relayed", tx_hash=tx_hash)
        return TransactionResult(transaction_hash=tx_hash)

    async def queue_proposal(self, proposal_record_id: int) -> TransactionResult:
        return await self._replay_proposal(proposal_record_id, "queue", "ProposalQueued")

    async def execute_proposal(self, proposal_record_id: int) -> TransactionResult:
        return await self._replay_proposal(proposal_record_id, "execute", "ProposalExecuted")

    async def set_share_price(self, venture_id: int, price_per_share: int) -> TransactionResult:
        """Admin price change on the sale treasury. The stored initial price is untouched."""
        venture = await self._get_venture(venture_id)
        treasury = venture.sale_treasury_address

        async with self.sequencer.reserve() as nonces:
            tx_hash = await self.chain.send(
                treasury, TREASURY_ABI, "setPriceByAdmin", [price_per_share], nonces.next()
            )
            await self.chain.wait(tx_hash)

        logger.info("Share price updated", venture_id=venture_id, price=price_per_share, tx_hash=tx_hash)
        return TransactionResult(transaction_hash=tx_hash)
