"""
Remote tabular endpoint abstraction.

The session store never talks HTTP directly. It goes through a
TableEndpoint: row-level CRUD on a single table, parameterized by filter
expressions. PostgrestService is the HTTP implementation; tests use an
in-memory one.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from pgrest_session.services.filters import Filter


Row = dict[str, Any]


class TableEndpoint(ABC):
    """
    Abstract base class for a filtered CRUD endpoint over one table.

    All methods are async. Absence of matching rows is never an error:
    read_one returns None, read_many returns an empty list, and update or
    delete with zero matches succeed.
    """

    @abstractmethod
    async def read_one(self, filters: Sequence[Filter]) -> Optional[Row]:
        """
        Read a single row.

        Args:
            filters: Conditions the row must satisfy.

        Returns:
            The matching row, or None if no row matched.

        Raises:
            TransportError: If the endpoint cannot be reached.
            RemoteError: If the endpoint rejects the request.
        """
        pass

    @abstractmethod
    async def read_many(self, filters: Sequence[Filter]) -> list[Row]:
        """
        Read every row matching the filters.

        Raises:
            TransportError: If the endpoint cannot be reached.
            RemoteError: If the endpoint rejects the request.
        """
        pass

    @abstractmethod
    async def insert(self, row: Row) -> None:
        """
        Create a row.

        Raises:
            TransportError: If the endpoint cannot be reached.
            RemoteError: If the endpoint rejects the row (e.g. a unique
                constraint violation).
        """
        pass

    @abstractmethod
    async def update(self, filters: Sequence[Filter], patch: Row) -> None:
        """
        Apply a partial update to every row matching the filters.

        Raises:
            TransportError: If the endpoint cannot be reached.
            RemoteError: If the endpoint rejects the request.
        """
        pass

    @abstractmethod
    async def delete(self, filters: Sequence[Filter]) -> None:
        """
        Delete every row matching the filters.

        Raises:
            TransportError: If the endpoint cannot be reached.
            RemoteError: If the endpoint rejects the request.
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """
        Check that the endpoint answers.

        Note:
            This method should not raise exceptions; connectivity issues
            result in a False return value.
        """
        pass

    async def close(self) -> None:
        """Release any connection resources. Default is a no-op."""
        return None
