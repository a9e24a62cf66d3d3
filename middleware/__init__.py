"""
Middleware components for the session store service.

This module contains the server-side session middleware and request
correlation middleware.
"""

from middleware.request_id import RequestIDMiddleware, request_id_var, get_request_id
from middleware.session import SessionMiddleware, generate_session_id

__all__ = [
    "RequestIDMiddleware",
    "request_id_var",
    "get_request_id",
    "SessionMiddleware",
    "generate_session_id",
]
