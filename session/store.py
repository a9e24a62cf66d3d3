"""
Session store abstraction for external session storage.

This module defines the contract between the session middleware and the
backend that persists session state. A store call completes exactly once:
it either returns its result or raises the backend's error unchanged.
"""

from abc import ABC, abstractmethod
from typing import Optional, Any
from datetime import timedelta


class SessionStore(ABC):
    """
    Abstract base class for session storage implementations.

    All methods are async to support non-blocking I/O against the
    external store. Implementations do not retry or translate backend
    errors; callers decide how to react to them.
    """

    @abstractmethod
    async def get(self, session_id: str) -> Optional[dict[str, Any]]:
        """
        Retrieve session data by session ID.

        Args:
            session_id: Unique identifier for the session.

        Returns:
            Session data if found and not expired, None otherwise.
        """
        pass

    @abstractmethod
    async def set(
        self,
        session_id: str,
        data: dict[str, Any],
        ttl: Optional[timedelta] = None
    ) -> None:
        """
        Store session data, replacing any existing record.

        Args:
            session_id: Unique identifier for the session.
            data: Session data to store.
            ttl: Optional time-to-live for this write. When omitted the
                session's own max age or the store default applies.
        """
        pass

    @abstractmethod
    async def destroy(self, session_id: str) -> None:
        """
        Delete session data by session ID.

        Idempotent: destroying a non-existent session is not an error.
        """
        pass

    @abstractmethod
    async def touch(
        self,
        session_id: str,
        data: dict[str, Any],
        ttl: Optional[timedelta] = None
    ) -> bool:
        """
        Refresh the expiration of an existing session without rewriting it.

        Args:
            session_id: Unique identifier for the session.
            data: The current session data, consulted only for its max age.
            ttl: Optional explicit time-to-live.

        Returns:
            True if the session exists and was refreshed, False otherwise.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check connectivity and health of the session store.

        Returns:
            True if the store is healthy and accessible, False otherwise.

        Note:
            This method should not raise exceptions.
        """
        pass
