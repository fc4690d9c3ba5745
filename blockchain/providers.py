from dishka import Provider, Scope, provide, FromComponent
from blockchain.abi_service import ABIService, NFT_CONTRACT_ABI
from blockchain.ledger import LedgerClient, Web3LedgerClient
from blockchain.services import BalanceResolverService, LogQueryService, TransferDecoderService
from blockchain.usecases import GetBalanceAtDateUseCase, GetTransactionsUseCase, GetNftTransfersUseCase
from typing import Annotated
from web3 import AsyncWeb3
from core.environment.config import Settings
import aiohttp
import logging

Logger = Annotated[logging.Logger, FromComponent("logger")]
AppSettings = Annotated[Settings, FromComponent("environment")]


class BlockchainProvider(Provider):
    """
    Provider for blockchain-related dependencies.
    """

    component = "blockchain"

    @provide(scope=Scope.APP)
    def get_web3_client(self, settings: AppSettings) -> AsyncWeb3:
        """
        Provide Web3 client for the configured ledger node.

        Parameters
        ----------
        settings : Settings
            Application settings

        Returns
        -------
        AsyncWeb3
            Web3 client
        """
        return AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                settings.rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=settings.rpc_timeout)}
            )
        )

    @provide(scope=Scope.APP)
    def get_ledger_client(
        self,
        web3: Annotated[AsyncWeb3, FromComponent("blockchain")],
        logger: Logger
    ) -> LedgerClient:
        """
        Provide the ledger client used by all services.

        Parameters
        ----------
        web3 : AsyncWeb3
            Web3 client
        logger : logging.Logger
            Logger instance

        Returns
        -------
        LedgerClient
            Web3-backed ledger client
        """
        return Web3LedgerClient(web3=web3, logger=logger)

    @provide(scope=Scope.APP)
    def get_abi_service(self, logger: Logger) -> ABIService:
        """
        Provide the schema registry of the fixed NFT contract interface.
        """
        return ABIService(contract_abi=NFT_CONTRACT_ABI, logger=logger)

    @provide(scope=Scope.APP)
    def get_log_query_service(
        self,
        ledger: Annotated[LedgerClient, FromComponent("blockchain")],
        logger: Logger
    ) -> LogQueryService:
        return LogQueryService(ledger=ledger, logger=logger)

    @provide(scope=Scope.APP)
    def get_transfer_decoder_service(
        self,
        log_query_service: Annotated[LogQueryService, FromComponent("blockchain")],
        abi_service: Annotated[ABIService, FromComponent("blockchain")],
        logger: Logger
    ) -> TransferDecoderService:
        return TransferDecoderService(
            log_query_service=log_query_service,
            abi_service=abi_service,
            logger=logger
        )

    @provide(scope=Scope.APP)
    def get_balance_resolver_service(
        self,
        ledger: Annotated[LedgerClient, FromComponent("blockchain")],
        logger: Logger
    ) -> BalanceResolverService:
        return BalanceResolverService(ledger=ledger, logger=logger)

    @provide(scope=Scope.REQUEST)
    def get_balance_at_date_use_case(
        self,
        balance_resolver: Annotated[BalanceResolverService, FromComponent("blockchain")],
        settings: AppSettings,
        logger: Logger
    ) -> GetBalanceAtDateUseCase:
        """
        Provide get balance at date use case.

        Parameters
        ----------
        balance_resolver : BalanceResolverService
            Balance resolver service
        settings : Settings
            Application settings
        logger : logging.Logger
            Logger instance

        Returns
        -------
        GetBalanceAtDateUseCase
            Get balance at date use case
        """
        return GetBalanceAtDateUseCase(
            balance_resolver=balance_resolver,
            settings=settings,
            logger=logger
        )

    @provide(scope=Scope.REQUEST)
    def get_transactions_use_case(
        self,
        log_query_service: Annotated[LogQueryService, FromComponent("blockchain")],
        settings: AppSettings,
        logger: Logger
    ) -> GetTransactionsUseCase:
        return GetTransactionsUseCase(
            log_query_service=log_query_service,
            settings=settings,
            logger=logger
        )

    @provide(scope=Scope.REQUEST)
    def get_nft_transfers_use_case(
        self,
        transfer_decoder: Annotated[TransferDecoderService, FromComponent("blockchain")],
        settings: AppSettings,
        logger: Logger
    ) -> GetNftTransfersUseCase:
        return GetNftTransfersUseCase(
            transfer_decoder=transfer_decoder,
            settings=settings,
            logger=logger
        )
