"""Base exception for flowmap."""

from typing import Dict, Optional


class FlowmapError(Exception):
    """Base exception for all flowmap errors."""

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(FlowmapError):
    """Raised when configuration values or files are invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        details = {"key": config_key} if config_key else None
        super().__init__(message, details=details)
        self.config_key = config_key
