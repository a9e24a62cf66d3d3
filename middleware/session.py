"""
Server-side session middleware backed by a SessionStore.

The cookie only carries an opaque session id; the session payload lives in
the store. Handlers read and mutate ``request.session`` and the middleware
persists the outcome after the response is produced:

- a loaded session that was emptied is destroyed and its cookie removed
- a new non-empty session gets a fresh id, is written and its cookie set
- a loaded session that changed is rewritten
- an unchanged loaded session has its expiration refreshed (rolling mode)

Empty new sessions are never written.
"""

import copy
import logging
import secrets
from datetime import timedelta
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.types import ASGIApp
from starlette.middleware.base import BaseHTTPMiddleware

from errors.exceptions import session_store_unavailable
from errors.handlers import build_error_response
from session.expiration import session_max_age
from session.store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_COOKIE_NAME = "sid"


def generate_session_id() -> str:
    """Generate an unguessable session id."""
    return secrets.token_urlsafe(32)


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Loads ``request.session`` from a SessionStore and saves it afterwards.

    Attributes:
        store: The session store
        cookie_name: Name of the cookie carrying the session id
        max_age: Cookie and session lifetime in seconds. None issues a
            browser-session cookie and leaves expiration to the store default.
            A session carrying an integer ``cookie.max_age`` uses that instead.
        rolling: Refresh the expiration of unchanged sessions on each request
        https_only: Set the Secure cookie flag
        same_site: SameSite cookie attribute
        path: Cookie path
        domain: Cookie domain
    """

    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        max_age: Optional[int] = None,
        rolling: bool = True,
        https_only: bool = False,
        same_site: str = "lax",
        path: str = "/",
        domain: Optional[str] = None,
    ):
        super().__init__(app)
        self.store = store
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.rolling = rolling
        self.https_only = https_only
        self.same_site = same_site
        self.path = path
        self.domain = domain

    def _max_age_for(self, session: dict) -> Optional[int]:
        # A session declaring its own cookie.max_age takes precedence
        own = session_max_age(session)
        if own is not None:
            return int(own.total_seconds())
        return self.max_age

    def _ttl_for(self, session: dict) -> Optional[timedelta]:
        max_age = self._max_age_for(session)
        if max_age is None:
            return None
        return timedelta(seconds=max_age)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        session_id = request.cookies.get(self.cookie_name)

        data = None
        if session_id:
            try:
                data = await self.store.get(session_id)
            except Exception:
                return self._store_failure(request, "get")

        loaded = data is not None
        original = copy.deepcopy(data) if loaded else {}
        request.scope["session"] = data if loaded else {}

        response = await call_next(request)

        session = request.scope.get("session") or {}
        try:
            if loaded and not session:
                await self.store.destroy(session_id)
                self._clear_cookie(response)
            elif session and not loaded:
                # Never adopt an id the store does not know about
                session_id = generate_session_id()
                await self.store.set(session_id, session, ttl=self._ttl_for(session))
                self._set_cookie(response, session_id, session)
            elif session and session != original:
                await self.store.set(session_id, session, ttl=self._ttl_for(session))
                self._set_cookie(response, session_id, session)
            elif session and self.rolling:
                if await self.store.touch(session_id, session, ttl=self._ttl_for(session)):
                    self._set_cookie(response, session_id, session)
                else:
                    self._clear_cookie(response)
            elif session_id and not loaded:
                self._clear_cookie(response)
        except Exception:
            return self._store_failure(request, "save")

        return response

    def _set_cookie(self, response: Response, session_id: str, session: dict) -> None:
        response.set_cookie(
            self.cookie_name,
            session_id,
            max_age=self._max_age_for(session),
            path=self.path,
            domain=self.domain,
            secure=self.https_only,
            httponly=True,
            samesite=self.same_site,
        )

    def _clear_cookie(self, response: Response) -> None:
        response.delete_cookie(
            self.cookie_name,
            path=self.path,
            domain=self.domain,
            secure=self.https_only,
            httponly=True,
            samesite=self.same_site,
        )

    def _store_failure(self, request: Request, operation: str) -> Response:
        logger.exception(
            "Session store request failed",
            extra={"extra_data": {"operation": operation, "path": request.url.path}},
        )
        return build_error_response(
            request,
            session_store_unavailable(details={"operation": operation}),
        )
