"""VentureHUB backend services"""
from .chain_client import ChainClient, get_chain_client, close_chain_client
from .content_store import ContentStore, get_content_store, close_content_store
from .sequencer import TransactionSequencer, NonceReservation, get_sequencer
from .relay import RelayOrchestrator, VentureDraft
from .aggregation import AggregationReader, ProposalState
from .records import RecordService
from .gather import gather_partial, GatherResult

__all__ = [
    # Ledger and content store clients
    "ChainClient",
    "get_chain_client",
    "close_chain_client",
    "ContentStore",
    "get_content_store",
    "close_content_store",
    # Operator nonce sequencing
    "TransactionSequencer",
    "NonceReservation",
    "get_sequencer",
    # Workflows and views
    "RelayOrchestrator",
    "VentureDraft",
    "AggregationReader",
    "ProposalState",
    "RecordService",
    "gather_partial",
    "GatherResult",
]
