"""
PostgREST service for the session store.

Implements TableEndpoint over HTTP with an ``httpx.AsyncClient``. Every
call targets ``{base_url}/{table}`` and expresses row selection as
PostgREST horizontal filters in the query string.

Failures are translated at this boundary:
- ``httpx.TransportError`` becomes TransportError
- a non-2xx response becomes RemoteError (carrying the remote status)
"""

import logging
from typing import Any, Optional, Sequence

import httpx

from pgrest_session.config.settings import DEFAULT_BASE_URL, DEFAULT_TABLE, StoreSettings
from pgrest_session.errors.exceptions import (
    RemoteError,
    TransportError,
    internal_error,
    store_closed,
)
from pgrest_session.resilience.retry import RetryConfig, retry_async
from pgrest_session.services.endpoint import Row, TableEndpoint
from pgrest_session.services.filters import Filter

logger = logging.getLogger(__name__)

SINGULAR_MEDIA_TYPE = "application/vnd.pgrst.object+json"
NOT_ACCEPTABLE = 406
# PostgREST answers a singular request with 406 and this code when zero rows
# match. Any other 406 is a real failure.
NO_ROWS_CODE = "PGRST116"


class PostgrestService(TableEndpoint):
    """
    HTTP client for one PostgREST table.

    Reads are retried on TransportError according to ``retry_config``;
    writes are sent exactly once.

    Attributes:
        base_url: Root URL of the PostgREST endpoint
        table: Table (resource) name, e.g. "sessions"
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        table: str = DEFAULT_TABLE,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 30.0,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the service.

        Args:
            base_url: Endpoint root URL.
            table: Table name appended to the base URL.
            headers: Extra headers sent with every request.
            timeout: Per-request timeout in seconds.
            retry_config: Retry policy for reads. Defaults to a single attempt.
            transport: Optional httpx transport, e.g. ``httpx.MockTransport``.
        """
        self.base_url = base_url.rstrip("/")
        self.table = table
        self._path = f"/{table}"
        self._retry_config = retry_config or RetryConfig(
            retryable_exceptions=(TransportError,)
        )
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers or {},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: StoreSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "PostgrestService":
        """Build a service from StoreSettings."""
        return cls(
            settings.base_url,
            table=settings.table,
            headers=settings.headers,
            timeout=settings.request_timeout,
            retry_config=RetryConfig(
                max_attempts=settings.read_retry_attempts,
                initial_delay=settings.read_retry_delay,
                retryable_exceptions=(TransportError,),
            ),
            transport=transport,
        )

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def _send(
        self,
        method: str,
        filters: Sequence[Filter] = (),
        *,
        params: Sequence[tuple[str, str]] = (),
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        if self._client.is_closed:
            raise store_closed(details={"method": method, "table": self.table})

        query = [f.as_param() for f in filters] + list(params)
        logger.debug(
            "%s %s %s",
            method,
            self._path,
            "&".join(f"{k}={v}" for k, v in query),
            extra={"extra_data": {"method": method, "table": self.table}}
        )

        try:
            response = await self._client.request(
                method, self._path, params=query, json=json, headers=headers
            )
        except httpx.TransportError as e:
            logger.warning(
                "%s %s failed: %s",
                method,
                self._path,
                e,
                extra={"extra_data": {"method": method, "error_type": type(e).__name__}}
            )
            raise TransportError(
                f"{method} {self._path} failed: {e}",
                details={"method": method, "table": self.table}
            ) from e

        return response

    def _check(self, response: httpx.Response) -> httpx.Response:
        if response.is_success:
            return response

        try:
            body: Any = response.json()
        except ValueError:
            body = response.text

        method = response.request.method
        raise RemoteError(
            f"{method} {self._path} returned {response.status_code}",
            remote_status=response.status_code,
            details={"method": method, "table": self.table, "body": body}
        )

    @staticmethod
    def _is_no_rows(response: httpx.Response) -> bool:
        if response.status_code != NOT_ACCEPTABLE:
            return False
        try:
            body = response.json()
        except ValueError:
            return False
        return isinstance(body, dict) and body.get("code") == NO_ROWS_CODE

    async def _read(self, filters: Sequence[Filter], singular: bool) -> Any:
        headers = {"Accept": SINGULAR_MEDIA_TYPE} if singular else None
        response = await self._send("GET", filters, headers=headers)

        if singular and self._is_no_rows(response):
            return None

        return self._check(response).json()

    async def read_one(self, filters: Sequence[Filter]) -> Optional[Row]:
        data = await retry_async(
            self._read,
            filters,
            True,
            config=self._retry_config,
            operation_name="read_one",
        )

        # Some deployments ignore the singular media type and send an array
        if isinstance(data, list):
            return data[0] if data else None
        if data is None or isinstance(data, dict):
            return data

        raise internal_error(
            f"Unexpected response shape from {self._path}",
            details={"type": type(data).__name__}
        )

    async def read_many(self, filters: Sequence[Filter]) -> list[Row]:
        data = await retry_async(
            self._read,
            filters,
            False,
            config=self._retry_config,
            operation_name="read_many",
        )

        if not isinstance(data, list):
            raise internal_error(
                f"Unexpected response shape from {self._path}",
                details={"type": type(data).__name__}
            )
        return data

    async def insert(self, row: Row) -> None:
        response = await self._send(
            "POST", json=row, headers={"Prefer": "return=minimal"}
        )
        self._check(response)

    async def update(self, filters: Sequence[Filter], patch: Row) -> None:
        if not filters:
            raise ValueError("update requires at least one filter")

        response = await self._send(
            "PATCH", filters, json=patch, headers={"Prefer": "return=minimal"}
        )
        self._check(response)

    async def delete(self, filters: Sequence[Filter]) -> None:
        if not filters:
            raise ValueError("delete requires at least one filter")

        response = await self._send("DELETE", filters)
        self._check(response)

    async def ping(self) -> bool:
        try:
            response = await self._send("GET", params=[("limit", "0")])
            return response.is_success
        except Exception:
            return False

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if not self._client.is_closed:
            await self._client.aclose()
