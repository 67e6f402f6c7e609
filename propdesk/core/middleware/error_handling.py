"""Exception to JSON response mapping for the HTTP layer."""

import time
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from propdesk.core.exceptions import BaseAppException
from propdesk.core.logging import get_logger

logger = get_logger(__name__)


def _error_body(code: str, message: str, details: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "timestamp": int(time.time()),
        }
    }


async def handle_application_exception(request: Request, exception: BaseAppException) -> JSONResponse:
    """Handle custom application exceptions"""
    logger.warning(
        f"Application exception: {exception.error_code.value} - {exception.message}",
        extra={
            "error_code": exception.error_code.value,
            "path": request.url.path,
            "method": request.method,
        },
    )
    body = exception.to_dict()
    body["error"]["timestamp"] = int(time.time())
    return JSONResponse(status_code=exception.status_code, content=body)


async def handle_database_error(request: Request, exception: SQLAlchemyError) -> JSONResponse:
    """Handle database exceptions"""
    if isinstance(exception, IntegrityError):
        error_code = "INTEGRITY_CONSTRAINT_VIOLATION"
        message = "Database integrity constraint violation"
        status_code = status.HTTP_409_CONFLICT
    else:
        error_code = "DATABASE_ERROR"
        message = "Database operation failed"
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(
        f"Database exception: {error_code}",
        extra={
            "exception_type": type(exception).__name__,
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=True,
    )
    return JSONResponse(status_code=status_code, content=_error_body(error_code, message, {}))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAppException, handle_application_exception)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
