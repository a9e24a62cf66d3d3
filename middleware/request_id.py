"""
Request ID middleware for log and error correlation.

Takes the X-Request-ID header (or a fresh UUID), exposes it on
``request.state.request_id`` and in ``request_id_var`` for the JSON log
formatter, and echoes it on the response.
"""

import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to every request and response."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            # Do not leak the id into the next request on this context
            request_id_var.reset(token)


def get_request_id() -> str:
    """Get the current request ID, or an empty string outside a request."""
    return request_id_var.get()
