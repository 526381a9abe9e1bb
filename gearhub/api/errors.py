"""
Translate core errors into HTTP responses.

Conflicts (reservation taken, already allocated, already decided) map to
409, missing rows to 404, store outages to 503. Anything unexpected is left
to FastAPI's default 500 handling and logged by the request middleware.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gearhub.core.errors import GearhubError
from gearhub.core.logging import get_logger

logger = get_logger(__name__)


async def gearhub_error_handler(request: Request, exc: GearhubError) -> JSONResponse:
    logger.info("request_rejected", code=exc.code, status_code=exc.status_code, detail=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GearhubError, gearhub_error_handler)
