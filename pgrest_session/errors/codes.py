"""
Error code catalog for the session store.

This module defines the error codes raised by the store and its remote
endpoint client, covering transport failures, remote rejections,
unreadable session rows, and internal errors.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the session store.

    Codes are grouped by where the failure originates:
    - Endpoint errors: the endpoint was unreachable or rejected the request
    - Record errors: a stored row cannot be read as a session
    - Internal errors: misuse or unexpected state
    """

    # Endpoint errors
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """Network or connection failure reaching the endpoint"""

    REMOTE_ERROR = "REMOTE_ERROR"
    """Non-success response from the endpoint"""

    # Record errors
    MALFORMED_RECORD = "MALFORMED_RECORD"
    """Stored session payload cannot be interpreted"""

    # Internal errors
    STORE_CLOSED = "STORE_CLOSED"
    """Operation requires an open store"""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected store error"""
