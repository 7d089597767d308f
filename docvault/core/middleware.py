"""HTTP middleware: CORS for the browser client, request ids and access logging."""

import logging
import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from docvault.core.config import settings
from docvault.core.logging import get_logger

logger = get_logger("http")

REQUEST_ID_HEADER = "X-Request-Id"
QUIET_PATHS = {"/api/health"}


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id (reusing the caller's) and log its outcome.

    Server errors log at ERROR, client errors at WARNING, the rest at INFO.
    Health probes are only logged when they fail.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        response: Response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"

        status_code = response.status_code
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        if level > logging.INFO or request.url.path not in QUIET_PATHS:
            logger.log(
                level,
                "[%s] %s %s -> %d (%.1fms)",
                request_id, request.method, request.url.path, status_code, elapsed_ms,
            )
        return response


def setup_middleware(app: FastAPI) -> None:
    """Install CORS and access logging on the app."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(AccessLogMiddleware)
