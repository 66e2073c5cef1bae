"""
Session persistence over a PostgREST table.

Quick start:

    from pgrest_session import PostgrestSessionStore

    async with PostgrestSessionStore(base_url="http://localhost:3000") as store:
        await store.set(sid, {"cookie": {"maxAge": 86400000}})
"""

from pgrest_session.config import StoreSettings
from pgrest_session.errors import (
    AppException,
    ErrorCode,
    MalformedRecordError,
    RemoteError,
    TransportError,
)
from pgrest_session.session import PostgrestSessionStore, Pruner, SessionStore

__version__ = "0.1.0"

__all__ = [
    "PostgrestSessionStore",
    "SessionStore",
    "Pruner",
    "StoreSettings",
    "AppException",
    "ErrorCode",
    "TransportError",
    "RemoteError",
    "MalformedRecordError",
]
