import asyncio
import logging
from typing import Protocol

import aiohttp
from web3 import AsyncWeb3, Web3
from web3.exceptions import Web3Exception

from blockchain.entities import BlockEntity, LogRecordEntity
from core.exceptions import RPCException

RPC_ERRORS = (Web3Exception, aiohttp.ClientError, asyncio.TimeoutError)


class LedgerClient(Protocol):
    """
    Read-only capability over a ledger node.

    Implementations raise ``RPCException`` for any failure talking to the
    node or interpreting its response.
    """

    async def get_logs(self, address: str, from_block: int) -> list[LogRecordEntity]:
        ...

    async def get_block(self, block_number: int) -> BlockEntity:
        ...

    async def get_block_number(self) -> int:
        ...

    async def get_balance(self, address: str, block_number: int) -> int:
        ...


class Web3LedgerClient:
    """
    ``LedgerClient`` backed by an ``AsyncWeb3`` HTTP client.

    Parameters
    ----------
    web3 : AsyncWeb3
        Web3 client connected to the ledger node
    logger : logging.Logger
        Logger instance
    """

    def __init__(self, web3: AsyncWeb3, logger: logging.Logger):
        self.web3 = web3
        self.logger = logger

    async def get_logs(self, address: str, from_block: int) -> list[LogRecordEntity]:
        """
        Fetch all logs emitted by ``address`` from ``from_block`` to the chain head.

        Parameters
        ----------
        address : str
            Emitting address
        from_block : int
            First block of the range (inclusive)

        Returns
        -------
        list[LogRecordEntity]
            Logs in node order
        """
        filter_params = {
            'address': Web3.to_checksum_address(address),
            'fromBlock': from_block,
            'toBlock': 'latest'
        }
        try:
            logs = await self.web3.eth.get_logs(filter_params)
        except RPC_ERRORS as e:
            self.logger.warning(f"eth_getLogs failed for {address} from block {from_block}: {e}")
            raise RPCException(f"Failed to fetch logs: {e}") from e

        return [self._to_log_record(log) for log in logs]

    async def get_block(self, block_number: int) -> BlockEntity:
        try:
            block = await self.web3.eth.get_block(block_number)
        except RPC_ERRORS as e:
            self.logger.warning(f"eth_getBlockByNumber failed for block {block_number}: {e}")
            raise RPCException(f"Failed to fetch block {block_number}: {e}") from e

        return BlockEntity(number=block['number'], timestamp=block['timestamp'])

    async def get_block_number(self) -> int:
        try:
            return int(await self.web3.eth.block_number)
        except RPC_ERRORS as e:
            self.logger.warning(f"eth_blockNumber failed: {e}")
            raise RPCException(f"Failed to fetch chain height: {e}") from e

    async def get_balance(self, address: str, block_number: int) -> int:
        try:
            balance = await self.web3.eth.get_balance(
                Web3.to_checksum_address(address), block_number
            )
        except RPC_ERRORS as e:
            self.logger.warning(f"eth_getBalance failed for {address} at block {block_number}: {e}")
            raise RPCException(f"Failed to fetch balance: {e}") from e

        return int(balance)

    @staticmethod
    def _to_log_record(log) -> LogRecordEntity:
        return LogRecordEntity(
            transaction_hash=Web3.to_hex(log['transactionHash']),
            address=log['address'],
            topics=[Web3.to_hex(topic) for topic in log['topics']],
            data=Web3.to_hex(log['data']) if log['data'] else '0x',
            block_number=log['blockNumber'],
            log_index=log['logIndex']
        )
