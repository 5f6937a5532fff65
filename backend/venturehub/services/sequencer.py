"""Operator nonce sequencing for privileged ledger writes"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional

import structlog

from venturehub.services.chain_client import ChainClient, get_chain_client

logger = structlog.get_logger()


@dataclass
class NonceReservation:
    """Nonces handed out inside one reservation: base, base + 1, ..."""
    base: int
    issued: List[int] = field(default_factory=list)

    def next(self) -> int:
        nonce = self.base + len(self.issued)
        self.issued.append(nonce)
        return nonce


class TransactionSequencer:
    """
    Single writer for the operator account.

    Only one reservation is open at a time; the pending transaction count is
    read once when it opens and never again until the next reservation, so
    the transactions of one workflow get consecutive nonces and two workflows
    never share one.
    """

    def __init__(self, chain: ChainClient):
        self.chain = chain
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def reserve(self) -> AsyncIterator[NonceReservation]:
        async with self._lock:
            base = await self.chain.get_transaction_count(self.chain.operator_address)
            reservation = NonceReservation(base=base)
            logger.debug("Nonce reservation opened", base=base)
            try:
                yield reservation
            finally:
                logger.debug("Nonce reservation closed", base=base, used=len(reservation.issued))


# Singleton instance
_sequencer: Optional[TransactionSequencer] = None


async def get_sequencer() -> TransactionSequencer:
    """Get or create the process-wide sequencer"""
    global _sequencer
    if _sequencer is None:
        _sequencer = TransactionSequencer(await get_chain_client())
    return _sequencer


def reset_sequencer() -> None:
    global _sequencer
    _sequencer = None
