"""CORS and request-context middleware."""

import logging
import re
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from workbench.core.config import Settings

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
# UUIDs and short opaque ids; anything else is replaced
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,63}$")


def request_id_from(header_value: Optional[str]) -> str:
    """Reuse the caller's request id when it is safe to echo, else mint one."""
    if header_value and REQUEST_ID_PATTERN.match(header_value):
        return header_value
    return uuid.uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and log its outcome.

    The log line names the authenticated user (``request.state.user``, set by
    ``get_current_user``) and the error code of a rejected request
    (``request.state.error_code``, set by the exception handlers).
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request_id_from(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response: Response = await call_next(request)

        duration = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration)

        user = getattr(request.state, "user", None)
        error_code = getattr(request.state, "error_code", None)
        logger.log(
            logging.WARNING if error_code else logging.INFO,
            "%s %s %s %sms request_id=%s user=%s code=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration,
            request_id,
            user.id if user is not None else "-",
            error_code or "-",
        )
        return response


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure all middleware for the application."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestContextMiddleware)
