"""
Error handling module for the session store.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- AppException base class for store-specific exceptions
- TransportError, RemoteError and MalformedRecordError for endpoint failures
"""

from pgrest_session.errors.codes import ErrorCode
from pgrest_session.errors.exceptions import (
    AppException,
    MalformedRecordError,
    RemoteError,
    TransportError,
    internal_error,
    store_closed,
)

__all__ = [
    "ErrorCode",
    "AppException",
    "TransportError",
    "RemoteError",
    "MalformedRecordError",
    "internal_error",
    "store_closed",
]
