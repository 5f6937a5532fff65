"""Fake ledger and content-store collaborators shared by the tests"""
import itertools
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from jose import jwt
from web3 import Web3

from venturehub.config import get_settings
from venturehub.errors import ExternalServiceFailure
from venturehub.models.user import User

settings = get_settings()

OPERATOR_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OPERATOR_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def addr(n: int) -> str:
    """Checksummed test address derived from an integer"""
    return Web3.to_checksum_address(f"0x{n:040x}")


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header for a user, signed like the auth service signs it"""
    token = jwt.encode({"sub": str(user.id)}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


@dataclass
class SentTransaction:
    address: str
    abi: str
    function: str
    args: List[Any]
    nonce: int
    tx_hash: str


def _read_key(address: str, function: str, args: Tuple) -> Tuple:
    return (
        address.lower(),
        function,
        tuple(a.lower() if isinstance(a, str) else a for a in args),
    )


class FakeChainClient:
    """
    In-memory ledger double.

    Reads answer from fixtures set with `set_read`; the pending nonce grows
    with every sent transaction; each confirmed transaction "emits" the event
    configured for its function in `events`.
    """

    operator_address = OPERATOR_ADDRESS

    def __init__(self, base_nonce: int = 7):
        self.base_nonce = base_nonce
        self.sent: List[SentTransaction] = []
        self.reads: Dict[Tuple, Any] = {}
        self.events: Dict[str, Optional[Dict[str, Any]]] = {}
        self.recipients: Dict[str, List[str]] = {}
        self.send_errors: Dict[str, Exception] = {}
        self.reverted: set = set()
        self.nonce_reads = 0
        self._hashes = itertools.count(1)

    def set_read(self, address: str, function: str, *args: Any, value: Any) -> None:
        self.reads[_read_key(address, function, args)] = value

    async def get_transaction_count(self, address: str) -> int:
        self.nonce_reads += 1
        return self.base_nonce + len(self.sent)

    async def get_block_number(self) -> int:
        return 1234

    async def read(self, address: str, abi: str, function: str, *args: Any) -> Any:
        key = _read_key(address, function, args)
        if key not in self.reads:
            raise ExternalServiceFailure(f"{abi}.{function} at {address} failed: no such call")
        value = self.reads[key]
        if isinstance(value, Exception):
            raise value
        return value

    async def get_transfer_recipients(self, token_address: str) -> List[str]:
        return list(self.recipients.get(token_address.lower(), []))

    def encode_call(self, address: str, abi: str, function: str, args=()) -> str:
        return "0x" + Web3.keccak(text=f"{function}()").hex().removeprefix("0x")[:8]

    async def send(self, address: str, abi: str, function: str, args, nonce: int) -> str:
        if function in self.send_errors:
            raise self.send_errors[function]
        tx_hash = f"0x{next(self._hashes):064x}"
        self.sent.append(SentTransaction(address, abi, function, list(args), nonce, tx_hash))
        return tx_hash

    async def wait(self, tx_hash: str) -> Dict[str, Any]:
        tx = next(t for t in self.sent if t.tx_hash == tx_hash)
        if tx.function in self.reverted:
            raise ExternalServiceFailure(f"Transaction {tx_hash} reverted")
        return {"transactionHash": tx_hash, "status": 1, "function": tx.function, "logs": []}

    def find_event(self, receipt: Dict[str, Any], address: str, abi: str, event: str):
        return self.events.get(event)

    def functions_sent(self) -> List[str]:
        return [t.function for t in self.sent]


class FakeContentStore:
    """Records pins and returns sequential ipfs:// locators"""

    def __init__(self):
        self.files: List[Tuple[str, bytes, str]] = []
        self.documents: List[Tuple[str, Dict[str, Any]]] = []
        self.error: Optional[Exception] = None

    @property
    def calls(self) -> int:
        return len(self.files) + len(self.documents)

    async def store(self, data: bytes, name: str, content_type: str = "application/octet-stream") -> str:
        if self.error:
            raise self.error
        self.files.append((name, data, content_type))
        return f"ipfs://QmFile{len(self.files)}"

    async def store_json(self, document: Dict[str, Any], name: str) -> str:
        if self.error:
            raise self.error
        self.documents.append((name, document))
        return f"ipfs://QmJson{len(self.documents)}"

