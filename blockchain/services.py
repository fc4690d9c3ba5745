import logging
from datetime import date, datetime, time, timezone

from blockchain.abi_service import ABIService
from blockchain.entities import BalanceEntity, BlockEntity, LogRecordEntity, TransferEventEntity
from blockchain.ledger import LedgerClient
from core.exceptions import BlockNotFoundException


def address_topic(address: str) -> str:
    """
    Encode an address as a lowercase 32-byte topic.

    Parameters
    ----------
    address : str
        0x-prefixed 20-byte address

    Returns
    -------
    str
        Address left-padded with zeros to 32 bytes
    """
    return "0x" + address[2:].lower().rjust(64, "0")


class LogQueryService:
    """
    Service for retrieving raw logs emitted by an address.

    Parameters
    ----------
    ledger : LedgerClient
        Ledger node client
    logger : logging.Logger
        Logger instance
    """

    def __init__(self, ledger: LedgerClient, logger: logging.Logger):
        self.ledger = ledger
        self.logger = logger

    async def fetch_logs(self, address: str, start_block: int) -> list[LogRecordEntity]:
        """
        Get all logs emitted by ``address`` from ``start_block`` to the chain head.

        Parameters
        ----------
        address : str
            Emitting address (account or contract)
        start_block : int
            First block of the range (inclusive)

        Returns
        -------
        list[LogRecordEntity]
            Logs in ledger order; empty if nothing matched

        Raises
        ------
        RPCException
            If the node call fails
        """
        self.logger.info(f"Fetching logs for {address} from block {start_block}")
        logs = await self.ledger.get_logs(address, start_block)
        self.logger.info(f"Fetched {len(logs)} logs for {address}")
        return logs


class TransferDecoderService:
    """
    Service for decoding NFT Transfer events that involve an account.

    Parameters
    ----------
    log_query_service : LogQueryService
        Log retrieval service
    abi_service : ABIService
        Registry holding the NFT contract interface
    logger : logging.Logger
        Logger instance
    """

    EVENT_NAME = "Transfer"

    def __init__(
        self,
        log_query_service: LogQueryService,
        abi_service: ABIService,
        logger: logging.Logger
    ):
        self.log_query_service = log_query_service
        self.abi_service = abi_service
        self.logger = logger

    async def decode_transfers(
        self,
        contract_address: str,
        target_account: str,
        start_block: int
    ) -> list[TransferEventEntity]:
        """
        Get Transfer events of a contract where the account is sender or receiver.

        Parameters
        ----------
        contract_address : str
            NFT contract address
        target_account : str
            Account that must appear as ``from`` or ``to``
        start_block : int
            First block of the range (inclusive)

        Returns
        -------
        list[TransferEventEntity]
            Decoded events in ledger order

        Raises
        ------
        RPCException
            If fetching logs fails
        DecodeException
            If a matching log has a malformed payload
        """
        schema = self.abi_service.get_event(self.EVENT_NAME)
        target_topic = address_topic(target_account)

        logs = await self.log_query_service.fetch_logs(contract_address, start_block)

        events = []
        for log in logs:
            if not schema.matches(log):
                self.logger.debug(f"Skipping non-{schema.name} log {log.log_index} in tx {log.transaction_hash}")
                continue
            if target_topic not in (log.topics[1].lower(), log.topics[2].lower()):
                continue

            args = self.abi_service.decode_log(schema, log)
            events.append(
                TransferEventEntity(
                    from_address=args['from'],
                    to_address=args['to'],
                    token_id=args['tokenId'],
                    transaction_hash=log.transaction_hash,
                    block_number=log.block_number,
                    log_index=log.log_index
                )
            )

        self.logger.info(
            f"Decoded {len(events)} {schema.name} events for {target_account} "
            f"out of {len(logs)} logs of {contract_address}"
        )
        return events


class BalanceResolverService:
    """
    Service for reading an account balance as of a calendar date.

    Parameters
    ----------
    ledger : LedgerClient
        Ledger node client
    logger : logging.Logger
        Logger instance
    """

    def __init__(self, ledger: LedgerClient, logger: logging.Logger):
        self.ledger = ledger
        self.logger = logger

    async def balance_at(self, account: str, target_date: date) -> BalanceEntity:
        """
        Get the balance at the latest block mined strictly before ``target_date``.

        Parameters
        ----------
        account : str
            Account address
        target_date : date
            Calendar date, taken at 00:00 UTC

        Returns
        -------
        BalanceEntity
            Balance and the block it was read at

        Raises
        ------
        BlockNotFoundException
            If no block precedes the date
        RPCException
            If any node call fails
        """
        target_ts = int(datetime.combine(target_date, time.min, tzinfo=timezone.utc).timestamp())
        block_number = await self.find_block_before(target_ts)

        balance_wei = await self.ledger.get_balance(account, block_number)
        self.logger.info(f"Balance of {account} at block {block_number}: {balance_wei}")

        return BalanceEntity(
            address=account,
            block_number=block_number,
            balance_wei=balance_wei
        )

    async def find_block_before(self, target_ts: int) -> int:
        """
        Find the latest block whose timestamp is strictly below ``target_ts``.

        Block timestamps never decrease with block number, so the boundary
        is found by binary search over ``[0, head]``.

        Parameters
        ----------
        target_ts : int
            Unix timestamp

        Returns
        -------
        int
            Block number

        Raises
        ------
        BlockNotFoundException
            If even the genesis block is not before ``target_ts``
        """
        head = await self.ledger.get_block_number()
        head_block = await self.ledger.get_block(head)
        if head_block.timestamp < target_ts:
            return head

        genesis = await self.ledger.get_block(0)
        if genesis.timestamp >= target_ts:
            raise BlockNotFoundException(
                f"No blocks found before {datetime.fromtimestamp(target_ts, tz=timezone.utc).isoformat()}"
            )

        # ts(low) < target_ts <= ts(high)
        low, high = genesis.number, head_block.number
        probes = 2
        while high - low > 1:
            mid = (low + high) // 2
            block: BlockEntity = await self.ledger.get_block(mid)
            probes += 1
            if block.timestamp < target_ts:
                low = mid
            else:
                high = mid

        self.logger.debug(f"Resolved timestamp {target_ts} to block {low} in {probes} block fetches")
        return low
