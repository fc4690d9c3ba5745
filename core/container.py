from dishka import AsyncContainer, Provider, make_async_container
from dishka.integrations.fastapi import FastapiProvider

from core.environment.providers import EnvironmentProvider
from blockchain.providers import BlockchainProvider
from core.logging.providers import LoggerProvider


def build_container(*overrides: Provider) -> AsyncContainer:
    """
    Build the application DI container.

    Parameters
    ----------
    *overrides : Provider
        Providers registered last, replacing earlier factories of the
        same type and component (e.g. a fake ledger client in tests)

    Returns
    -------
    AsyncContainer
        Async container with all application providers
    """
    return make_async_container(
        FastapiProvider(),
        EnvironmentProvider(),
        LoggerProvider(),
        BlockchainProvider(),
        *overrides
    )


container = build_container()
