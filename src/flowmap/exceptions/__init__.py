"""Exception hierarchy for flowmap."""

from .base import ConfigurationError, FlowmapError
from .taxonomy import (
    AuthorizationError,
    CodedError,
    ErrorCode,
    ExternalDependencyError,
    ExtractionLimitExceeded,
    GraphIntegrityError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

__all__ = [
    "FlowmapError",
    "ConfigurationError",
    "CodedError",
    "ErrorCode",
    "ValidationError",
    "ExternalDependencyError",
    "AuthorizationError",
    "ExtractionLimitExceeded",
    "GraphIntegrityError",
    "NotFoundError",
    "PersistenceError",
]
