"""User-facing error types."""

from __future__ import annotations


class StudioError(Exception):
    """Base error; ``message`` is safe to show in the UI."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(StudioError):
    """Input rejected before any remote call (non-image upload, empty prompt)."""


class DecodeError(StudioError):
    """Uploaded file could not be read or decoded as an image."""
