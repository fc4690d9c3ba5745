import asyncio
import logging
import os
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from dishka import Provider, Scope, provide
from eth_abi import encode
from httpx import AsyncClient, ASGITransport
from web3 import Web3

# Set test environment variables before imports
os.environ['ENV_FILE'] = os.devnull
os.environ['RPC_URL'] = 'http://localhost:8545'
os.environ['LOG_LEVEL'] = 'DEBUG'

from blockchain.abi_service import ABIService, NFT_CONTRACT_ABI  # noqa: E402
from blockchain.entities import BlockEntity, LogRecordEntity  # noqa: E402
from blockchain.ledger import LedgerClient  # noqa: E402
from blockchain.services import (  # noqa: E402
    BalanceResolverService,
    LogQueryService,
    TransferDecoderService,
    address_topic
)
from core.exceptions import RPCException  # noqa: E402

TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
APPROVAL_TOPIC = "0x8c5be1e5ebec7d5bd14f71427d1e84f3dd0314c0f7b2291e5b200ac8c7c3b925"

ALICE = Web3.to_checksum_address("0x" + "a1" * 20)
BOB = Web3.to_checksum_address("0x" + "b2" * 20)
CAROL = Web3.to_checksum_address("0x" + "c3" * 20)
CONTRACT = Web3.to_checksum_address("0x" + "4e" * 20)


def utc_ts(value: str) -> int:
    """Unix timestamp of an ISO ``YYYY-MM-DDTHH:MM:SS`` string in UTC."""
    return int(datetime.fromisoformat(value).replace(tzinfo=timezone.utc).timestamp())


def transfer_log(
    sender: str,
    receiver: str,
    token_id: int,
    block_number: int,
    log_index: int = 0,
    contract: str = CONTRACT
) -> LogRecordEntity:
    """Build a well-formed Transfer log with the token id in the payload."""
    return LogRecordEntity(
        transaction_hash="0x" + f"{block_number:032x}{log_index:032x}",
        address=contract,
        topics=[TRANSFER_TOPIC, address_topic(sender), address_topic(receiver)],
        data=Web3.to_hex(encode(['uint256'], [token_id])),
        block_number=block_number,
        log_index=log_index
    )


class FakeLedgerClient:
    """
    In-memory ledger implementing ``LedgerClient``.

    Parameters
    ----------
    timestamps : dict[int, int]
        Block number to block timestamp
    logs : list[LogRecordEntity]
        Logs in ledger order
    balances : dict[tuple[str, int], int]
        (lowercase address, block number) to balance
    """

    def __init__(self, timestamps=None, logs=None, balances=None):
        self.timestamps = timestamps or {}
        self.logs = logs or []
        self.balances = balances or {}
        self.calls: list[tuple] = []
        self.failure: Exception | None = None
        self.hang_on: str | None = None

    async def _record(self, method: str, *args):
        self.calls.append((method, *args))
        if self.failure is not None:
            raise self.failure
        if self.hang_on == method:
            await asyncio.Event().wait()

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    async def get_logs(self, address: str, from_block: int) -> list[LogRecordEntity]:
        await self._record("get_logs", address, from_block)
        return [
            log for log in self.logs
            if log.address.lower() == address.lower() and log.block_number >= from_block
        ]

    async def get_block(self, block_number: int) -> BlockEntity:
        await self._record("get_block", block_number)
        if block_number not in self.timestamps:
            raise RPCException(f"block {block_number} not found")
        return BlockEntity(number=block_number, timestamp=self.timestamps[block_number])

    async def get_block_number(self) -> int:
        await self._record("get_block_number")
        return max(self.timestamps, default=0)

    async def get_balance(self, address: str, block_number: int) -> int:
        await self._record("get_balance", address, block_number)
        return self.balances.get((address.lower(), block_number), 0)


def linear_chain(head: int, genesis_ts: int, spacing: int = 12) -> dict[int, int]:
    """Timestamps for blocks ``0..head`` mined every ``spacing`` seconds."""
    return {number: genesis_ts + number * spacing for number in range(head + 1)}


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("account_activity_api.tests")


@pytest.fixture
def ledger() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def abi_service(logger) -> ABIService:
    return ABIService(contract_abi=NFT_CONTRACT_ABI, logger=logger)


@pytest.fixture
def log_query_service(ledger, logger) -> LogQueryService:
    return LogQueryService(ledger=ledger, logger=logger)


@pytest.fixture
def transfer_decoder(log_query_service, abi_service, logger) -> TransferDecoderService:
    return TransferDecoderService(
        log_query_service=log_query_service,
        abi_service=abi_service,
        logger=logger
    )


@pytest.fixture
def balance_resolver(ledger, logger) -> BalanceResolverService:
    return BalanceResolverService(ledger=ledger, logger=logger)


@pytest_asyncio.fixture
async def client(ledger):
    """
    Fixture for async test client backed by the fake ledger.

    Parameters
    ----------
    ledger : FakeLedgerClient
        In-memory ledger replacing the Web3 client

    Yields
    ------
    AsyncClient
        Async HTTP client for testing
    """
    from core.container import build_container
    from main import create_app

    class FakeLedgerProvider(Provider):
        component = "blockchain"

        @provide(scope=Scope.APP)
        def get_ledger_client(self) -> LedgerClient:
            return ledger

    di_container = build_container(FakeLedgerProvider())
    app = create_app(di_container)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await di_container.close()
