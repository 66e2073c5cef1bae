"""
Exception classes for the session store.

This module provides the AppException base class and the concrete
exceptions raised while talking to the remote session table:
TransportError, RemoteError and MalformedRecordError.

A missing session row is never an exception: reads return None and
deletes or existence checks treat zero matches as success.
"""

from typing import Any, Optional

from pgrest_session.errors.codes import ErrorCode


class AppException(Exception):
    """
    Base exception class for all session store errors.

    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - details: Optional additional context (e.g., the failing URL)

    Example:
        raise AppException(
            error_code=ErrorCode.INTERNAL_ERROR,
            message="Store is misconfigured",
            details={"table": "sessions"}
        )
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize an AppException.

        Args:
            error_code: The error code from the ErrorCode enum
            message: A human-readable error message
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for JSON serialization.

        Returns:
            Dictionary containing error_code, message, and details
        """
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )


class TransportError(AppException):
    """The remote endpoint could not be reached (DNS, connect, timeout)."""

    def __init__(
        self,
        message: str = "Session endpoint unreachable",
        details: Optional[dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.TRANSPORT_ERROR,
            message=message,
            details=details
        )


class RemoteError(AppException):
    """
    The remote endpoint answered with a non-success status.

    Attributes:
        remote_status: The status code returned by the endpoint
    """

    def __init__(
        self,
        message: str,
        remote_status: int,
        details: Optional[dict[str, Any]] = None
    ):
        self.remote_status = remote_status
        super().__init__(
            error_code=ErrorCode.REMOTE_ERROR,
            message=message,
            details=details
        )


class MalformedRecordError(AppException):
    """A fetched row's payload cannot be interpreted as a session."""

    def __init__(self, sid: str, reason: str):
        self.sid = sid
        super().__init__(
            error_code=ErrorCode.MALFORMED_RECORD,
            message=f"Session {sid!r} has a malformed payload: {reason}",
            details={"sid": sid, "reason": reason}
        )


def store_closed(
    message: str = "Session store is closed",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a store closed exception."""
    return AppException(
        error_code=ErrorCode.STORE_CLOSED,
        message=message,
        details=details
    )


def internal_error(
    message: str = "An unexpected error occurred",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create an internal error exception."""
    return AppException(
        error_code=ErrorCode.INTERNAL_ERROR,
        message=message,
        details=details
    )
