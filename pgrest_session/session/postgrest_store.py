"""
PostgREST-backed session store implementation.

Session rows live in a remote table with the columns ``sid`` (unique
text), ``sess`` (JSON) and ``expire`` (integer Unix seconds). Every store
operation is a fresh round trip through a TableEndpoint; nothing is
cached between calls.

Expired rows are hidden from get() by filtering on ``expire >= now`` and
removed physically by a background Pruner that deletes ``expire <= now``
every ``prune_session_interval`` seconds.
"""

import asyncio
import json
import logging
import time
from typing import Any, Optional

from pgrest_session.config.settings import StoreSettings, create_settings
from pgrest_session.errors.exceptions import MalformedRecordError, store_closed
from pgrest_session.services.endpoint import Row, TableEndpoint
from pgrest_session.services.filters import eq, gte, lte
from pgrest_session.services.postgrest_service import PostgrestService
from pgrest_session.session.expiry import Clock, compute_expiry, cookie_max_age, now_seconds
from pgrest_session.session.pruner import Pruner, SleepFunc
from pgrest_session.session.store import ErrorListener, SessionStore

logger = logging.getLogger(__name__)


class PostgrestSessionStore(SessionStore):
    """
    Session store backed by a PostgREST table.

    The store can be configured with a StoreSettings instance or with
    keyword overrides (``base_url``, ``headers``, ``prune_session_interval``,
    ``ttl``, ...). Without an explicit ``endpoint`` it creates its own
    PostgrestService and closes it on close(); an injected endpoint is left
    open for its owner.

    Pruning starts immediately when the store is created inside a running
    event loop, otherwise on start() or ``async with store``.

    Example:
        async with PostgrestSessionStore(base_url="http://db:3000") as store:
            await store.set("abc", {"cookie": {"maxAge": 3600000}, "user": 1})
            sess = await store.get("abc")

    Attributes:
        settings: Effective store settings
        endpoint: TableEndpoint the store reads and writes through
        ttl: Fixed time-to-live in seconds, or None to follow max_age
    """

    def __init__(
        self,
        settings: Optional[StoreSettings] = None,
        *,
        endpoint: Optional[TableEndpoint] = None,
        clock: Clock = time.time,
        sleep: SleepFunc = asyncio.sleep,
        **options: Any
    ):
        """
        Initialize the store.

        Args:
            settings: Store settings. Built from the environment plus
                ``options`` when omitted.
            endpoint: Table endpoint to use instead of an owned
                PostgrestService.
            clock: Source of the current Unix time in seconds.
            sleep: Awaitable used by the pruner to wait between passes.
            **options: StoreSettings field overrides, used only when
                ``settings`` is omitted.

        Raises:
            ConfigurationError: If the resulting settings are invalid.
        """
        self.settings = settings if settings is not None else create_settings(**options)
        self.ttl = self.settings.ttl
        self._clock = clock
        self._closed = False
        self._error_listeners: list[ErrorListener] = []

        if endpoint is None:
            self.endpoint: TableEndpoint = PostgrestService.from_settings(self.settings)
            self._owns_endpoint = True
        else:
            self.endpoint = endpoint
            self._owns_endpoint = False

        self._pruner = Pruner(
            self.prune_sessions,
            self.settings.prune_session_interval,
            sleep=sleep,
            on_error=self._emit_error,
        )

        logger.debug(
            "Session store created",
            extra={
                "extra_data": {
                    "base_url": self.settings.base_url,
                    "table": self.settings.table,
                    "prune_session_interval": self.settings.prune_session_interval,
                    "ttl": self.ttl,
                }
            }
        )

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; pruning starts on start()")
        else:
            self._pruner.start()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pruner(self) -> Pruner:
        return self._pruner

    async def start(self) -> "PostgrestSessionStore":
        """
        Start background pruning if it is not running yet.

        Raises:
            AppException: If the store has been closed.
        """
        if self._closed:
            raise store_closed()
        self._pruner.start()
        return self

    async def __aenter__(self) -> "PostgrestSessionStore":
        return await self.start()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def compute_expiry(self, max_age: Optional[float] = None) -> int:
        """Expiry instant for a session written now, in Unix seconds."""
        return compute_expiry(max_age, ttl=self.ttl, now=self._clock())

    def _max_age(self, sess: Any, max_age: Optional[float]) -> Optional[float]:
        return max_age if max_age is not None else cookie_max_age(sess)

    async def get(self, sid: str) -> Optional[dict[str, Any]]:
        """
        Fetch the non-expired session stored under ``sid``.

        A row whose payload cannot be read as a session is destroyed. In
        that case the destroy outcome is what the caller sees: None when it
        succeeds, its error when it fails.
        """
        now = now_seconds(self._clock)
        row = await self.endpoint.read_one([eq("sid", sid), gte("expire", now)])

        if row is None:
            logger.debug("get - no session found", extra={"extra_data": {"sid": sid}})
            return None

        try:
            return self._parse_payload(sid, row)
        except MalformedRecordError as e:
            logger.warning(
                "Destroying session with malformed payload: %s",
                e.details.get("reason"),
                extra={"extra_data": {"sid": sid}}
            )
            await self.destroy(sid)
            return None

    @staticmethod
    def _parse_payload(sid: str, row: Row) -> dict[str, Any]:
        if "sess" not in row:
            raise MalformedRecordError(sid, "row has no sess column")

        sess = row["sess"]
        if isinstance(sess, str):
            try:
                sess = json.loads(sess)
            except ValueError as e:
                raise MalformedRecordError(sid, f"invalid JSON: {e}") from e

        if not isinstance(sess, dict):
            raise MalformedRecordError(
                sid, f"expected an object, got {type(sess).__name__}"
            )
        return sess

    async def set(
        self,
        sid: str,
        sess: dict[str, Any],
        max_age: Optional[float] = None
    ) -> None:
        """
        Insert or update the session under ``sid``.

        ``max_age`` (milliseconds) falls back to ``sess["cookie"]["maxAge"]``.
        The existence check and the write are separate requests; concurrent
        sets for one sid are resolved by the endpoint.
        """
        expire = self.compute_expiry(self._max_age(sess, max_age))
        existing = await self.endpoint.read_many([eq("sid", sid)])

        if not existing:
            await self.endpoint.insert({"sid": sid, "sess": sess, "expire": expire})
            logger.debug("set - session created", extra={"extra_data": {"sid": sid, "expire": expire}})
        else:
            await self.endpoint.update([eq("sid", sid)], {"sess": sess, "expire": expire})
            logger.debug("set - session updated", extra={"extra_data": {"sid": sid, "expire": expire}})

    async def destroy(self, sid: str) -> None:
        await self.endpoint.delete([eq("sid", sid)])
        logger.debug("destroy - session deleted", extra={"extra_data": {"sid": sid}})

    async def touch(
        self,
        sid: str,
        sess: dict[str, Any],
        max_age: Optional[float] = None
    ) -> None:
        """Push back the expiry of ``sid``; the stored payload is untouched."""
        expire = self.compute_expiry(self._max_age(sess, max_age))
        await self.endpoint.update([eq("sid", sid)], {"expire": expire})
        logger.debug("touch - session refreshed", extra={"extra_data": {"sid": sid, "expire": expire}})

    async def prune_sessions(self) -> None:
        """
        Delete every row whose expiry is at or before now.

        Raises:
            AppException: If the endpoint cannot be reached or rejects the delete.
        """
        now = now_seconds(self._clock)
        await self.endpoint.delete([lte("expire", now)])
        logger.debug("Expired sessions pruned", extra={"extra_data": {"now": now}})

    async def close(self) -> None:
        """
        Close the store.

        Stops the pruner and, if the store owns its endpoint, waits for an
        in-flight prune pass before releasing the HTTP client. Calling
        close() again is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        self._pruner.stop()

        if self._owns_endpoint:
            await self._pruner.wait_stopped()
            await self.endpoint.close()

        logger.debug("Session store closed")

    async def health_check(self) -> bool:
        return await self.endpoint.ping()

    def add_error_listener(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    def remove_error_listener(self, listener: ErrorListener) -> None:
        try:
            self._error_listeners.remove(listener)
        except ValueError:
            pass

    def _emit_error(self, error: BaseException) -> None:
        for listener in list(self._error_listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Session store error listener raised")
