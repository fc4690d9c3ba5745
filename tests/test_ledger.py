import asyncio

import aiohttp
import pytest
from hexbytes import HexBytes
from unittest.mock import AsyncMock, MagicMock
from web3.exceptions import Web3Exception

from blockchain.entities import BlockEntity
from blockchain.ledger import Web3LedgerClient
from core.exceptions import RPCException
from conftest import ALICE, BOB, CONTRACT, TRANSFER_TOPIC


@pytest.fixture
def web3():
    """Mock AsyncWeb3 client."""
    mock = MagicMock()
    mock.eth.get_logs = AsyncMock(return_value=[])
    mock.eth.get_block = AsyncMock()
    mock.eth.get_balance = AsyncMock()
    return mock


@pytest.fixture
def ledger_client(web3, logger) -> Web3LedgerClient:
    return Web3LedgerClient(web3=web3, logger=logger)


class TestWeb3LedgerClient:
    """
    Unit tests for the Web3-backed ledger client.
    """

    @pytest.mark.asyncio
    async def test_get_logs_builds_filter_and_converts_records(self, web3, ledger_client):
        web3.eth.get_logs.return_value = [{
            'transactionHash': HexBytes("0x" + "ab" * 32),
            'address': CONTRACT,
            'topics': [HexBytes(TRANSFER_TOPIC), HexBytes("0x" + "00" * 12 + "a1" * 20)],
            'data': HexBytes("0x" + "00" * 31 + "01"),
            'blockNumber': 17,
            'logIndex': 2,
        }]

        logs = await ledger_client.get_logs(ALICE.lower(), 15)

        web3.eth.get_logs.assert_awaited_once_with(
            {'address': ALICE, 'fromBlock': 15, 'toBlock': 'latest'}
        )
        assert len(logs) == 1
        assert logs[0].transaction_hash == "0x" + "ab" * 32
        assert logs[0].topics == [TRANSFER_TOPIC, "0x" + "00" * 12 + "a1" * 20]
        assert logs[0].data == "0x" + "00" * 31 + "01"
        assert (logs[0].block_number, logs[0].log_index) == (17, 2)

    @pytest.mark.asyncio
    async def test_get_logs_empty_payload(self, web3, ledger_client):
        web3.eth.get_logs.return_value = [{
            'transactionHash': HexBytes("0x" + "cd" * 32),
            'address': CONTRACT,
            'topics': [],
            'data': HexBytes(b""),
            'blockNumber': 1,
            'logIndex': 0,
        }]

        logs = await ledger_client.get_logs(CONTRACT, 0)

        assert logs[0].data == "0x"
        assert logs[0].topics == []

    @pytest.mark.asyncio
    async def test_get_block(self, web3, ledger_client):
        web3.eth.get_block.return_value = {'number': 100, 'timestamp': 1672531200, 'hash': HexBytes(b"\x01")}

        block = await ledger_client.get_block(100)

        assert block == BlockEntity(number=100, timestamp=1672531200)
        web3.eth.get_block.assert_awaited_once_with(100)

    @pytest.mark.asyncio
    async def test_get_block_number(self, web3, ledger_client):
        async def height():
            return 19_000_000

        web3.eth.block_number = height()

        assert await ledger_client.get_block_number() == 19_000_000

    @pytest.mark.asyncio
    async def test_get_balance_uses_checksum_address(self, web3, ledger_client):
        web3.eth.get_balance.return_value = 10 ** 18

        balance = await ledger_client.get_balance(BOB.lower(), 42)

        assert balance == 10 ** 18
        web3.eth.get_balance.assert_awaited_once_with(BOB, 42)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        Web3Exception("execution reverted"),
        aiohttp.ClientConnectionError("connection refused"),
        asyncio.TimeoutError(),
    ])
    async def test_node_failures_become_rpc_errors(self, web3, ledger_client, error):
        web3.eth.get_logs.side_effect = error
        web3.eth.get_block.side_effect = error
        web3.eth.get_balance.side_effect = error

        with pytest.raises(RPCException):
            await ledger_client.get_logs(CONTRACT, 0)
        with pytest.raises(RPCException):
            await ledger_client.get_block(1)
        with pytest.raises(RPCException):
            await ledger_client.get_balance(ALICE, 1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        Web3Exception("execution reverted"),
        aiohttp.ClientConnectionError("connection refused"),
        asyncio.TimeoutError(),
    ])
    async def test_chain_height_failure_becomes_rpc_error(self, web3, ledger_client, error):
        async def height():
            raise error

        web3.eth.block_number = height()

        with pytest.raises(RPCException, match="chain height"):
            await ledger_client.get_block_number()
