"""Unit tests for the EVM chain client"""
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock
from eth_abi import encode
from hexbytes import HexBytes
from web3 import Web3

from venturehub.errors import ExternalServiceFailure
from venturehub.services.chain_client import ChainClient, event_topic, load_abi

from tests.fakes import OPERATOR_ADDRESS, OPERATOR_KEY, addr

FACTORY = addr(0xFAC7)


def _address_topic(address: str) -> HexBytes:
    return HexBytes(b"\x00" * 12 + Web3.to_bytes(hexstr=address))


def _log(address: str, topics, data: bytes = b"", index: int = 0) -> dict:
    return {
        "address": address,
        "topics": [HexBytes(t) for t in topics],
        "data": HexBytes(data),
        "blockNumber": 10,
        "blockHash": HexBytes(b"\x01" * 32),
        "transactionHash": HexBytes(b"\x02" * 32),
        "transactionIndex": 0,
        "logIndex": index,
    }


@pytest_asyncio.fixture
async def chain_client():
    chain = ChainClient(rpc_url="http://127.0.0.1:8545", private_key=OPERATOR_KEY)
    await chain.connect()
    yield chain
    await chain.disconnect()


@pytest.fixture
def mocked_client():
    """ChainClient with web3 replaced by a MagicMock"""
    chain = ChainClient(rpc_url="http://127.0.0.1:8545", private_key=OPERATOR_KEY)
    chain._w3 = MagicMock()
    return chain


class TestAbis:
    """Tests for bundled ABI loading"""

    def test_bundled_abis_load(self):
        for name in ["VentureFactory", "VentureShare", "SaleTreasury", "VentureDAO", "ERC20"]:
            abi = load_abi(name)
            assert isinstance(abi, list)
            assert len(abi) > 0

    def test_event_topic_matches_signature(self):
        assert event_topic("VentureShare", "Transfer") == Web3.keccak(text="Transfer(address,address,uint256)")

    def test_unknown_event(self):
        with pytest.raises(KeyError):
            event_topic("VentureShare", "Approval")


class TestChainClientSetup:
    """Tests for client construction"""

    def test_operator_address_from_key(self):
        chain = ChainClient(private_key=OPERATOR_KEY)
        assert chain.operator_address == OPERATOR_ADDRESS

    def test_missing_operator_key(self):
        chain = ChainClient(private_key="")
        with pytest.raises(ExternalServiceFailure):
            chain.operator_address

    def test_not_connected(self):
        chain = ChainClient(private_key=OPERATOR_KEY)
        with pytest.raises(RuntimeError):
            chain.w3


class TestFindEvent:
    """Tests for receipt event extraction"""

    @pytest.mark.asyncio
    async def test_token_created(self, chain_client):
        token = addr(0xBEEF)
        receipt = {"logs": [
            _log(FACTORY, [event_topic("VentureFactory", "TokenCreated"), _address_topic(token)]),
        ]}
        args = chain_client.find_event(receipt, FACTORY, "VentureFactory", "TokenCreated")
        assert args == {"shareToken": token}

    @pytest.mark.asyncio
    async def test_venture_created(self, chain_client):
        founder, token, vault, treasury, dao, timelock = (addr(0xA0 + i) for i in range(6))
        data = encode(["address"] * 5, [token, vault, treasury, dao, timelock])
        receipt = {"logs": [
            _log(FACTORY, [
                event_topic("VentureFactory", "VentureCreated"),
                (42).to_bytes(32, "big"),
                _address_topic(founder),
            ], data),
        ]}
        args = chain_client.find_event(receipt, FACTORY, "VentureFactory", "VentureCreated")
        assert args["ventureId"] == 42
        assert args["founder"] == founder
        assert args["shareToken"] == token
        assert args["saleTreasury"] == treasury
        assert args["timelock"] == timelock

    @pytest.mark.asyncio
    async def test_ignores_logs_from_other_contracts(self, chain_client):
        receipt = {"logs": [
            _log(addr(0xBAD), [event_topic("VentureFactory", "TokenCreated"), _address_topic(addr(1))]),
        ]}
        assert chain_client.find_event(receipt, FACTORY, "VentureFactory", "TokenCreated") is None

    @pytest.mark.asyncio
    async def test_missing_event(self, chain_client):
        receipt = {"logs": [
            _log(FACTORY, [event_topic("VentureShare", "Transfer"), _address_topic(addr(1)), _address_topic(addr(2))],
                 encode(["uint256"], [5])),
        ]}
        assert chain_client.find_event(receipt, FACTORY, "VentureFactory", "TokenCreated") is None


class TestReadsAndWrites:
    """Tests for call, send and wait wrapping"""

    @pytest.mark.asyncio
    async def test_read_returns_value(self, mocked_client):
        contract = mocked_client._w3.eth.contract.return_value
        contract.functions.balanceOf.return_value.call = AsyncMock(return_value=10 ** 18)

        balance = await mocked_client.read(addr(1), "VentureShare", "balanceOf", addr(2))
        assert balance == 10 ** 18
        contract.functions.balanceOf.assert_called_with(addr(2))

    @pytest.mark.asyncio
    async def test_read_failure_is_external(self, mocked_client):
        contract = mocked_client._w3.eth.contract.return_value
        contract.functions.pricePerShare.return_value.call = AsyncMock(side_effect=ConnectionError("refused"))

        with pytest.raises(ExternalServiceFailure) as exc_info:
            await mocked_client.read(addr(1), "SaleTreasury", "pricePerShare")
        assert "refused" in exc_info.value.details

    @pytest.mark.asyncio
    async def test_send_signs_at_given_nonce(self, mocked_client):
        contract = mocked_client._w3.eth.contract.return_value
        build = AsyncMock(return_value={
            "to": addr(1),
            "value": 0,
            "gas": 100000,
            "gasPrice": 1,
            "nonce": 5,
            "chainId": 31337,
            "data": "0x",
        })
        contract.functions.setPriceByAdmin.return_value.build_transaction = build
        mocked_client._w3.eth.send_raw_transaction = AsyncMock(return_value=HexBytes(b"\x12" * 32))

        tx_hash = await mocked_client.send(addr(1), "SaleTreasury", "setPriceByAdmin", [1_750_000], 5)

        assert tx_hash == "0x" + "12" * 32
        build.assert_awaited_once_with({"from": OPERATOR_ADDRESS, "nonce": 5})
        mocked_client._w3.eth.send_raw_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_send_rejection_is_external(self, mocked_client):
        contract = mocked_client._w3.eth.contract.return_value
        contract.functions.propose.return_value.build_transaction = AsyncMock(
            side_effect=ValueError("execution reverted: Governor: proposer votes below threshold")
        )
        with pytest.raises(ExternalServiceFailure) as exc_info:
            await mocked_client.send(addr(1), "VentureDAO", "propose", [[], [], [], ""], 0)
        assert "proposer votes below threshold" in exc_info.value.details

    @pytest.mark.asyncio
    async def test_wait_reverted(self, mocked_client):
        mocked_client._w3.eth.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": 0, "blockNumber": 3, "logs": []}
        )
        with pytest.raises(ExternalServiceFailure):
            await mocked_client.wait("0x" + "ab" * 32)

    @pytest.mark.asyncio
    async def test_wait_success(self, mocked_client):
        receipt = {"status": 1, "blockNumber": 3, "logs": []}
        mocked_client._w3.eth.wait_for_transaction_receipt = AsyncMock(return_value=receipt)
        assert await mocked_client.wait("0x" + "ab" * 32) is receipt

    @pytest.mark.asyncio
    async def test_transfer_recipients_deduplicated(self, mocked_client):
        contract = mocked_client._w3.eth.contract.return_value
        events = [
            {"args": {"from": addr(0), "to": addr(1), "value": 5}},
            {"args": {"from": addr(0), "to": addr(2), "value": 5}},
            {"args": {"from": addr(1), "to": addr(2), "value": 1}},
            {"args": {"from": addr(2), "to": addr(3), "value": 1}},
        ]
        contract.events.Transfer.return_value.get_logs = AsyncMock(return_value=events)

        recipients = await mocked_client.get_transfer_recipients(addr(9))
        assert recipients == [addr(1), addr(2), addr(3)]
        contract.events.Transfer.return_value.get_logs.assert_awaited_once_with(from_block=0, to_block="latest")
