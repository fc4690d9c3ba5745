import asyncio
import logging
from typing import Awaitable, TypeVar

from blockchain.schemas import (
    BalanceResponse,
    NftTransferResponse,
    NftTransfersResponse,
    TransactionResponse,
    TransactionsResponse,
    parse_address,
    parse_block_number,
    parse_date
)
from blockchain.services import BalanceResolverService, LogQueryService, TransferDecoderService
from core.environment.config import Settings
from core.exceptions import DeadlineExceededException

T = TypeVar("T")


async def run_with_deadline(
    operation: Awaitable[T],
    timeout: float,
    logger: logging.Logger,
    description: str
) -> T:
    """
    Await a ledger operation, cancelling it once the deadline passes.

    Parameters
    ----------
    operation : Awaitable[T]
        Operation to run
    timeout : float
        Deadline in seconds
    logger : logging.Logger
        Logger instance
    description : str
        Operation description for logs and the error message

    Returns
    -------
    T
        Operation result

    Raises
    ------
    DeadlineExceededException
        If the operation did not finish in time
    """
    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning(f"{description} cancelled after {timeout}s")
        raise DeadlineExceededException(f"{description} did not complete within {timeout}s") from e


class GetBalanceAtDateUseCase:
    """
    Use case for getting an account balance as of a date.

    Parameters
    ----------
    balance_resolver : BalanceResolverService
        Balance resolver service
    settings : Settings
        Application settings
    logger : logging.Logger
        Logger instance
    """

    def __init__(
        self,
        balance_resolver: BalanceResolverService,
        settings: Settings,
        logger: logging.Logger
    ):
        self.balance_resolver = balance_resolver
        self.settings = settings
        self.logger = logger

    async def __call__(self, address: str, date: str) -> BalanceResponse:
        """
        Execute use case.

        Parameters
        ----------
        address : str
            Raw account address
        date : str
            Raw ``YYYY-MM-DD`` date

        Returns
        -------
        BalanceResponse
            Balance response
        """
        account = parse_address(address)
        target_date = parse_date(date)

        balance = await run_with_deadline(
            self.balance_resolver.balance_at(account, target_date),
            self.settings.request_timeout,
            self.logger,
            f"Balance lookup for {account} on {target_date}"
        )

        return BalanceResponse(
            balance=str(balance.balance_wei),
            block_number=balance.block_number
        )


class GetTransactionsUseCase:
    """
    Use case for listing raw logs emitted by an address.

    Parameters
    ----------
    log_query_service : LogQueryService
        Log retrieval service
    settings : Settings
        Application settings
    logger : logging.Logger
        Logger instance
    """

    def __init__(
        self,
        log_query_service: LogQueryService,
        settings: Settings,
        logger: logging.Logger
    ):
        self.log_query_service = log_query_service
        self.settings = settings
        self.logger = logger

    async def __call__(self, address: str, start_block: str) -> TransactionsResponse:
        account = parse_address(address)
        from_block = parse_block_number(start_block)

        logs = await run_with_deadline(
            self.log_query_service.fetch_logs(account, from_block),
            self.settings.request_timeout,
            self.logger,
            f"Log query for {account} from block {from_block}"
        )

        return TransactionsResponse(
            transactions=[
                TransactionResponse(
                    tx_hash=log.transaction_hash,
                    address=log.address,
                    data=log.data
                )
                for log in logs
            ]
        )


class GetNftTransfersUseCase:
    """
    Use case for listing NFT transfers of a contract involving an account.

    Parameters
    ----------
    transfer_decoder : TransferDecoderService
        Transfer decoder service
    settings : Settings
        Application settings
    logger : logging.Logger
        Logger instance
    """

    def __init__(
        self,
        transfer_decoder: TransferDecoderService,
        settings: Settings,
        logger: logging.Logger
    ):
        self.transfer_decoder = transfer_decoder
        self.settings = settings
        self.logger = logger

    async def __call__(
        self,
        address: str,
        contract_address: str,
        start_block: str
    ) -> NftTransfersResponse:
        """
        Execute use case.

        Parameters
        ----------
        address : str
            Raw account address
        contract_address : str
            Raw NFT contract address
        start_block : str
            Raw starting block number

        Returns
        -------
        NftTransfersResponse
            Transfers in ledger order
        """
        account = parse_address(address)
        contract = parse_address(contract_address, field="contractAddress")
        from_block = parse_block_number(start_block)

        events = await run_with_deadline(
            self.transfer_decoder.decode_transfers(contract, account, from_block),
            self.settings.request_timeout,
            self.logger,
            f"Transfer query for {account} on {contract} from block {from_block}"
        )

        return NftTransfersResponse(
            nft_transfers=[
                NftTransferResponse(
                    from_address=event.from_address,
                    to_address=event.to_address,
                    token_id=str(event.token_id)
                )
                for event in events
            ]
        )
