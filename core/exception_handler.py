import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError

from core.exceptions import BaseCustomException

logger = logging.getLogger("account_activity_api")


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    """
    Build the JSON error body shared by all handlers.

    Parameters
    ----------
    status_code : int
        HTTP status code
    message : str
        Human readable error message
    **extra
        Additional top-level fields

    Returns
    -------
    JSONResponse
        Error response
    """
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message, **extra}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation errors (missing or mistyped parameters).

    Parameters
    ----------
    request : Request
        FastAPI request
    exc : RequestValidationError
        Validation error

    Returns
    -------
    JSONResponse
        422 response listing offending fields
    """
    errors = [
        {
            "field": ".".join(
                str(x) for x in error["loc"] if not isinstance(x, int) and x not in ("body", "query")
            ) or "query",
            "message": error["msg"],
            "type": error["type"]
        }
        for error in exc.errors()
    ]
    return error_response(422, "Validation error", errors=errors)


async def http_exception_handler(request: Request, exc: HTTPException):
    return error_response(exc.status_code, exc.detail)


async def starlette_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, exc.detail)


async def custom_exception_handler(request: Request, exc: Exception):
    """
    Map domain exceptions to their HTTP status; anything else is a 500.

    Parameters
    ----------
    request : Request
        FastAPI request
    exc : Exception
        Raised exception

    Returns
    -------
    JSONResponse
        Error response
    """
    if isinstance(exc, BaseCustomException):
        status_code = exc.get_status_code()
        if status_code >= 500:
            logger.warning(f"{request.url.path} failed with {type(exc).__name__}: {exc.message}")
        return error_response(status_code, exc.message)

    logger.exception(f"Unhandled error on {request.url.path}", exc_info=exc)
    return error_response(500, "Internal server error")
