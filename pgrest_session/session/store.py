"""
Session store abstraction.

This module defines the interface web applications program against to
persist session state outside the process. Implementations hold no
session data themselves: every call is a round trip to the backing store.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


ErrorListener = Callable[[BaseException], Any]


class SessionStore(ABC):
    """
    Abstract base class for session storage implementations.

    All data methods are async to support non-blocking I/O with the
    backing store. Besides the CRUD methods, a store exposes an "error"
    event channel: callbacks registered with add_error_listener receive
    failures from background work (such as expiry pruning) that has no
    caller to raise into.
    """

    @abstractmethod
    async def get(self, sid: str) -> Optional[dict[str, Any]]:
        """
        Retrieve the session payload for ``sid``.

        Returns:
            The session payload if a non-expired record exists, None
            otherwise.

        Raises:
            AppException: If the backing store cannot be reached or
                rejects the request.
        """
        pass

    @abstractmethod
    async def set(
        self,
        sid: str,
        sess: dict[str, Any],
        max_age: Optional[float] = None
    ) -> None:
        """
        Create or replace the session stored under ``sid``.

        Args:
            sid: Session identifier.
            sess: Session payload to store.
            max_age: Optional lifetime in milliseconds.

        Raises:
            AppException: If the backing store cannot be reached or
                rejects the write.
        """
        pass

    @abstractmethod
    async def destroy(self, sid: str) -> None:
        """
        Delete the session stored under ``sid``.

        This operation is idempotent: destroying a non-existent session
        does not raise an error.
        """
        pass

    @abstractmethod
    async def touch(
        self,
        sid: str,
        sess: dict[str, Any],
        max_age: Optional[float] = None
    ) -> None:
        """
        Extend the lifetime of the session under ``sid`` without
        rewriting its payload.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Stop background work and release owned resources."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check connectivity and health of the backing store.

        Note:
            This method should not raise exceptions - connectivity issues
            should be caught and result in a False return value.
        """
        pass

    @abstractmethod
    def add_error_listener(self, listener: ErrorListener) -> None:
        """Subscribe to errors raised by background work."""
        pass

    @abstractmethod
    def remove_error_listener(self, listener: ErrorListener) -> None:
        """Unsubscribe a listener added with add_error_listener."""
        pass
