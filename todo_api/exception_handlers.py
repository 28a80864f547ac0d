"""
Exception handlers of the application.

Domain errors are rendered with their status, code and message. Everything
else is logged with the request context and answered with a 500.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from todo_api.core.errors import TodoError

logger = logging.getLogger(__name__)


async def todo_error_handler(request: Request, exc: TodoError) -> JSONResponse:
    logger.debug(
        f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.context}"
    )
    return JSONResponse(
        status_code=exc.http_status,
        content={"code": exc.code, "message": exc.message},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Answer anything that is not a TodoError with a 500.

    The id in the body is part of the log line as well, so a reported failure
    can be matched to its traceback.
    """
    error_id = id(exc)
    client = request.client.host if request.client else "unknown"

    logger.error(
        f"Unhandled {type(exc).__name__} [{error_id}] in "
        f"{request.method} {request.url.path} from {client}: {exc}",
        exc_info=True,
        extra={"error_id": error_id, "path": request.url.path, "client": client},
    )

    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error.", "error_id": error_id},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TodoError, todo_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered")
