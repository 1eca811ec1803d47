"""Custom exception types for the SubFusion application."""

from __future__ import annotations

from typing import Any, Dict


class SubFusionError(Exception):
    """Base exception class for all application-specific errors."""

    pass


class ParserError(SubFusionError):
    """Raised for errors during node link parsing."""

    pass


class NetworkError(SubFusionError):
    """Raised for network-related errors, such as connection or timeout issues."""

    pass


class ConfigError(SubFusionError):
    """Raised for configuration-related errors."""

    pass


class StorageError(SubFusionError):
    """Raised when the key-value store cannot be read or written."""

    pass


class ProfileNotFoundError(SubFusionError):
    """Raised when no enabled profile matches the presented identifier."""

    status_code = 404

    def __init__(self, message: str = "Profile not found or disabled"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON error body for the HTTP layer."""
        return {"error": self.message}
