"""tracehop error hierarchy and exceptions."""

from __future__ import annotations


class TracehopError(Exception):
    """Base exception for all tracehop errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(TracehopError):
    """Raised when configuration is invalid or conflicting."""
    pass


class ExportError(TracehopError):
    """Raised when span export fails."""
    pass


class InitializationError(TracehopError):
    """Raised when tracing initialization fails."""
    pass
