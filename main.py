from dishka import AsyncContainer
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from dishka.integrations.fastapi import setup_dishka

from core.container import container
from core.exception_handler import (
    validation_exception_handler,
    http_exception_handler,
    starlette_exception_handler,
    custom_exception_handler
)
from core.exceptions import BaseCustomException
from blockchain.router import router as blockchain_router

APP_NAME = "Account Activity API"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Read-only account logs, NFT transfers and historical balances"


def create_app(di_container: AsyncContainer) -> FastAPI:
    """
    Create the FastAPI application.

    Parameters
    ----------
    di_container : AsyncContainer
        Dependency container serving the routes

    Returns
    -------
    FastAPI
        Configured application
    """
    application = FastAPI(
        title=APP_NAME,
        version=APP_VERSION,
        description=APP_DESCRIPTION,
    )

    setup_dishka(di_container, application)

    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(StarletteHTTPException, starlette_exception_handler)
    application.add_exception_handler(BaseCustomException, custom_exception_handler)
    application.add_exception_handler(Exception, custom_exception_handler)

    application.include_router(blockchain_router)

    @application.get("/")
    async def root():
        """
        Root endpoint.

        Returns
        -------
        dict
            Application information
        """
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "description": APP_DESCRIPTION,
            "endpoints": {
                "balance": "/api/blockchain/balance",
                "transactions": "/api/blockchain/transactions",
                "nft_transfers": "/api/blockchain/nft-transfers",
                "docs": "/docs"
            }
        }

    @application.get("/health")
    async def health():
        return {"status": "healthy", "version": APP_VERSION}

    return application


app = create_app(container)
