"""EVM JSON-RPC client wrapper for VentureHUB"""
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import event_abi_to_log_topic
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from venturehub.config import get_settings
from venturehub.errors import ExternalServiceFailure

logger = structlog.get_logger()
settings = get_settings()

BUNDLED_ABI_DIR = Path(__file__).resolve().parent.parent / "abis"


@lru_cache()
def load_abi(name: str) -> List[Dict[str, Any]]:
    """Load a contract ABI by contract name.

    Accepts both bare ABI arrays and Hardhat artifacts ({"abi": [...]}).
    """
    abi_dir = Path(settings.abi_dir) if settings.abi_dir else BUNDLED_ABI_DIR
    with open(abi_dir / f"{name}.json", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data["abi"]
    return data


def event_topic(abi: str, event: str) -> bytes:
    """topic0 of an event declared in the named ABI"""
    for item in load_abi(abi):
        if item.get("type") == "event" and item.get("name") == event:
            return event_abi_to_log_topic(item)
    raise KeyError(f"Event {event} not declared in {abi} ABI")


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return Web3.to_bytes(hexstr=value)
    return bytes(value)


def _reason(error: Exception) -> str:
    """Best available revert reason or transport message"""
    message = getattr(error, "message", None)
    if message:
        return str(message)
    return str(error) or error.__class__.__name__


class ChainClient:
    """Async ledger client; signs privileged transactions with the operator account"""

    def __init__(self, rpc_url: Optional[str] = None, private_key: Optional[str] = None):
        self.rpc_url = rpc_url or settings.json_rpc_url
        self._w3: Optional[AsyncWeb3] = None
        self._contracts: Dict[Tuple[str, str], Any] = {}

        key = private_key if private_key is not None else settings.operator_private_key
        self._operator: Optional[LocalAccount] = Account.from_key(key) if key else None

    async def connect(self) -> None:
        """Create the JSON-RPC provider"""
        if self._w3 is None:
            self._w3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_url))
            logger.info("Connected to JSON-RPC node", url=self.rpc_url)

    async def disconnect(self) -> None:
        """Close the provider session"""
        if self._w3 is not None:
            provider = self._w3.provider
            if hasattr(provider, "disconnect"):
                await provider.disconnect()
            self._w3 = None
            self._contracts.clear()
            logger.info("Disconnected from JSON-RPC node")

    @property
    def w3(self) -> AsyncWeb3:
        """Get the web3 instance, raise if not connected"""
        if self._w3 is None:
            raise RuntimeError("Chain client not connected. Call connect() first.")
        return self._w3

    @property
    def operator_address(self) -> str:
        return self._require_operator().address

    def _require_operator(self) -> LocalAccount:
        if self._operator is None:
            raise ExternalServiceFailure("Operator account is not configured")
        return self._operator

    def contract(self, address: str, abi: str) -> Any:
        """Contract binding for an address, cached per (address, abi)"""
        cache_key = (address.lower(), abi)
        if cache_key not in self._contracts:
            self._contracts[cache_key] = self.w3.eth.contract(
                address=Web3.to_checksum_address(address),
                abi=load_abi(abi),
            )
        return self._contracts[cache_key]

    # Reads

    async def get_block_number(self) -> int:
        try:
            return await self.w3.eth.block_number
        except Exception as e:
            raise ExternalServiceFailure(f"Block number unavailable: {_reason(e)}") from e

    async def get_transaction_count(self, address: str) -> int:
        """Next usable nonce for an account, counting pending transactions"""
        try:
            return await self.w3.eth.get_transaction_count(
                Web3.to_checksum_address(address), "pending"
            )
        except Exception as e:
            raise ExternalServiceFailure(f"Nonce lookup failed: {_reason(e)}") from e

    async def read(self, address: str, abi: str, function: str, *args: Any) -> Any:
        """Call a view function; no transaction, no wait"""
        try:
            contract = self.contract(address, abi)
            return await getattr(contract.functions, function)(*args).call()
        except Exception as e:
            raise ExternalServiceFailure(
                f"{abi}.{function} at {address} failed: {_reason(e)}"
            ) from e

    async def get_transfer_recipients(self, token_address: str) -> List[str]:
        """Every address that ever received the token, first-seen order, deduplicated"""
        try:
            contract = self.contract(token_address, "VentureShare")
            events = await contract.events.Transfer().get_logs(from_block=0, to_block="latest")
        except Exception as e:
            raise ExternalServiceFailure(
                f"Transfer history for {token_address} unavailable: {_reason(e)}"
            ) from e

        recipients: List[str] = []
        seen = set()
        for event in events:
            recipient = event["args"]["to"]
            if recipient.lower() not in seen:
                seen.add(recipient.lower())
                recipients.append(recipient)
        return recipients

    # Writes

    def encode_call(self, address: str, abi: str, function: str, args: Sequence[Any] = ()) -> str:
        """Calldata for a function call, as 0x-prefixed hex"""
        return self.contract(address, abi).encode_abi(function, args=list(args))

    async def send(
        self,
        address: str,
        abi: str,
        function: str,
        args: Sequence[Any],
        nonce: int,
    ) -> str:
        """Build, sign with the operator account and broadcast at an explicit nonce.

        Returns the transaction hash. Does not wait for inclusion.
        """
        operator = self._require_operator()
        try:
            contract = self.contract(address, abi)
            tx = await getattr(contract.functions, function)(*args).build_transaction({
                "from": operator.address,
                "nonce": nonce,
            })
            signed = operator.sign_transaction(tx)
            raw_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise ExternalServiceFailure(
                f"{abi}.{function} transaction rejected: {_reason(e)}"
            ) from e

        tx_hash = Web3.to_hex(raw_hash)
        logger.info("Transaction submitted", function=f"{abi}.{function}", nonce=nonce, tx_hash=tx_hash)
        return tx_hash

    async def wait(self, tx_hash: str) -> Dict[str, Any]:
        """Wait for inclusion; a reverted transaction is a failure"""
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=settings.tx_receipt_timeout
            )
        except Exception as e:
            raise ExternalServiceFailure(
                f"Transaction {tx_hash} not confirmed: {_reason(e)}"
            ) from e

        if receipt["status"] != 1:
            raise ExternalServiceFailure(f"Transaction {tx_hash} reverted")
        logger.info("Transaction confirmed", tx_hash=tx_hash, block=receipt["blockNumber"])
        return receipt

    def find_event(
        self,
        receipt: Dict[str, Any],
        address: str,
        abi: str,
        event: str,
    ) -> Optional[Dict[str, Any]]:
        """Decoded args of the first `event` emitted by `address` in the receipt, if any"""
        topic = event_topic(abi, event)
        contract = self.contract(address, abi)
        for log in receipt["logs"]:
            if log["address"].lower() != address.lower():
                continue
            if not log["topics"] or _as_bytes(log["topics"][0]) != topic:
                continue
            decoded = getattr(contract.events, event)().process_log(log)
            return dict(decoded["args"])
        return None


# Singleton instance
_chain_client: Optional[ChainClient] = None


async def get_chain_client() -> ChainClient:
    """Get or create chain client singleton"""
    global _chain_client
    if _chain_client is None:
        _chain_client = ChainClient()
        await _chain_client.connect()
    return _chain_client


async def close_chain_client() -> None:
    """Close chain client singleton"""
    global _chain_client
    if _chain_client is not None:
        await _chain_client.disconnect()
        _chain_client = None
