# crudkit/api/error_handlers.py
"""
FastAPI exception handlers that map CRUD service faults to HTTP responses.

The service raises crudkit.exceptions.* faults (NotFoundError, InvalidFieldError,
SaveFailedError, ...). These handlers produce stable JSON payloads (via
.to_payload()) and the matching HTTP status (via .http_status()).

    app = FastAPI()
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from crudkit.exceptions.base import (
    CRUDError,
    InvalidArgumentError,
    InvalidFieldError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


# Most specific first (NotFoundError, InvalidFieldError, InvalidArgumentError).
# Status codes and payloads are defined on the exception classes.

async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """
    404 Not Found.
    """
    logger.info("NotFoundError for %s %s", request.method, request.url)
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def invalid_field_handler(request: Request, exc: InvalidFieldError) -> JSONResponse:
    """
    422 Unprocessable Entity for unknown fields / relationships.
    """
    logger.info("InvalidFieldError for %s %s: fields=%s", request.method, request.url, exc.fields)
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def invalid_argument_handler(request: Request, exc: InvalidArgumentError) -> JSONResponse:
    logger.info("InvalidArgumentError for %s %s: %s", request.method, request.url, exc.message)
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def crud_error_handler(request: Request, exc: CRUDError) -> JSONResponse:
    """
    Fallback for save / delete / retrieval failures (500) and any other CRUDError.
    The payload carries the public detail only, never the raw storage message.
    """
    logger.warning("%s for %s %s: %s", type(exc).__name__, request.method, request.url, str(exc))
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(InvalidFieldError, invalid_field_handler)
    app.add_exception_handler(InvalidArgumentError, invalid_argument_handler)
    app.add_exception_handler(CRUDError, crud_error_handler)
