from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    URL_NOT_ALLOWED = "URL_NOT_ALLOWED"
    CACHE_KEY_REJECTED = "CACHE_KEY_REJECTED"
    SOURCE_UNAVAILABLE = "SOURCE_UNAVAILABLE"
    PAGE_NOT_FOUND = "PAGE_NOT_FOUND"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DocScoutError(Exception):
    """Base class for every expected failure condition.

    Tool handlers and the orchestrator let these propagate; the dispatcher
    maps each subclass onto a JSON-RPC error code and uses ``to_dict()`` as
    the error ``data`` payload.
    """

    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "suggestion": self.suggestion,
            "recoverable": self.recoverable,
        }


class ValidationError(DocScoutError):
    """Bad caller input. The message is safe to show verbatim."""

    default_code = ErrorCode.INVALID_INPUT


class SecurityError(DocScoutError):
    """A blocked URL or cache path.

    The message is always a generic denial; the specific reason is logged
    where the check happens and never travels back to the caller.
    """

    default_code = ErrorCode.URL_NOT_ALLOWED


class SourceError(DocScoutError):
    """Network, HTTP or parse failure inside a single documentation source."""

    default_code = ErrorCode.SOURCE_UNAVAILABLE

    def __init__(self, message: str, *, source_id: str = "", **kwargs) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)
        self.source_id = source_id


class TransportError(DocScoutError):
    """Unknown, expired or closed session."""

    default_code = ErrorCode.SESSION_NOT_FOUND


class InternalError(DocScoutError):
    default_code = ErrorCode.INTERNAL_ERROR
