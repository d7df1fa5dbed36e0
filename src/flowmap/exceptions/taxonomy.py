"""Error taxonomy with error codes and recovery hints.

Error Code Convention:
    FM1xx - Validation errors (malformed input)
    FM2xx - External dependency errors (tree, content, capture providers)
    FM3xx - Authorization errors
    FM4xx - Extraction errors (limits, skipped files)
    FM5xx - Graph integrity errors
    FM6xx - Persistence errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .base import FlowmapError


class ErrorCode(Enum):
    """Structured error codes for observability and debugging."""

    # Validation errors (FM1xx)
    FM100 = "FM100"  # Request failed validation

    # External dependency errors (FM2xx)
    FM200 = "FM200"  # Provider unreachable or non-2xx
    FM201 = "FM201"  # Provider timed out
    FM202 = "FM202"  # Provider rate limited

    # Authorization errors (FM3xx)
    FM300 = "FM300"  # Missing or invalid credential

    # Extraction errors (FM4xx)
    FM400 = "FM400"  # Traversal or file ceiling hit
    FM401 = "FM401"  # File skipped during extraction

    # Graph errors (FM5xx)
    FM500 = "FM500"  # Dangling id reference

    # Persistence errors (FM6xx)
    FM600 = "FM600"  # Record not found
    FM601 = "FM601"  # Store read/write failed


@dataclass
class CodedError(FlowmapError):
    """Base exception with structured context.

    Attributes:
        message: Human-readable error description
        code: Structured error code for categorization
        context: Additional context (repo, path, screen id, ...)
        recoverable: Whether the scan can continue past this error
        recovery_hint: Suggested fix for the user
    """

    message: str
    code: ErrorCode
    context: dict[str, Any] = field(default_factory=dict)
    recoverable: bool = True
    recovery_hint: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __post_init__(self) -> None:
        FlowmapError.__init__(
            self, self.message, {k: str(v) for k, v in self.context.items()}
        )

    def to_json(self) -> dict[str, Any]:
        """Structured logging format."""
        return {
            "error_code": self.code.value,
            "message": self.message,
            "context": self.context,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
        }


@dataclass
class ValidationError(CodedError):
    """Malformed request input (FM1xx)."""

    code: ErrorCode = ErrorCode.FM100
    recoverable: bool = False


@dataclass
class ExternalDependencyError(CodedError):
    """A tree, content or capture provider failed (FM2xx).

    ``retryable`` errors are retried with backoff at the call site and only
    surface once retries are exhausted.
    """

    code: ErrorCode = ErrorCode.FM200
    status_code: Optional[int] = None
    retryable: bool = True


@dataclass
class AuthorizationError(CodedError):
    """Missing or invalid credential for a private repository (FM3xx)."""

    code: ErrorCode = ErrorCode.FM300
    recoverable: bool = False
    recovery_hint: Optional[str] = "Provide an access token with read access to the repository"


@dataclass
class ExtractionLimitExceeded(CodedError):
    """A traversal or file ceiling was hit (FM4xx). Recorded, never fatal."""

    code: ErrorCode = ErrorCode.FM400


@dataclass
class GraphIntegrityError(CodedError):
    """A dangling id reference was found and dropped (FM5xx)."""

    code: ErrorCode = ErrorCode.FM500


@dataclass
class NotFoundError(CodedError):
    """A requested record does not exist or was superseded (FM600)."""

    code: ErrorCode = ErrorCode.FM600
    recoverable: bool = False


@dataclass
class PersistenceError(CodedError):
    """The key-value store failed (FM601)."""

    code: ErrorCode = ErrorCode.FM601
