"""Exception hierarchy shared by the store and the stylist client."""

from __future__ import annotations


class WardrobeError(Exception):
    """Base class for every error raised by the wardrobe core."""


class RemoteServiceError(WardrobeError):
    """Any failure reported by the remote classification/generation service."""


class NotConfiguredError(RemoteServiceError):
    """Service credentials are absent. Never retried."""

    def __init__(self, message: str = "AI service is not configured: missing API key") -> None:
        super().__init__(message)


class RateLimitedError(RemoteServiceError):
    """The service rejected a call because the quota is momentarily exhausted."""

    status = 429


class RetriesExhaustedError(RemoteServiceError):
    """A rate-limited call kept failing through every retry attempt."""

    def __init__(self, label: str, attempts: int) -> None:
        super().__init__(f"{label} still rate limited after {attempts} attempts; try again later")
        self.label = label
        self.attempts = attempts


class TerminalServiceError(RemoteServiceError):
    """A non-retryable failure, e.g. a malformed or empty response."""


class TurnaroundAbortedError(RemoteServiceError):
    """A turnaround batch stopped at ``viewpoint``; no partial images are kept."""

    def __init__(self, viewpoint: str, reason: str) -> None:
        super().__init__(f"Turnaround aborted at {viewpoint} view: {reason}")
        self.viewpoint = viewpoint


class OperationCancelledError(WardrobeError):
    """The caller cancelled before the next remote call was issued."""


class StorageError(WardrobeError):
    """The persistent backing store could not complete an operation."""


class StorageQuotaExceededError(StorageError):
    """A write would exceed the backing store's quota."""


class DuplicateEntityError(WardrobeError, ValueError):
    """An entity with the same id already exists in the active scope."""


__all__ = [
    "DuplicateEntityError",
    "NotConfiguredError",
    "OperationCancelledError",
    "RateLimitedError",
    "RemoteServiceError",
    "RetriesExhaustedError",
    "StorageError",
    "StorageQuotaExceededError",
    "TerminalServiceError",
    "TurnaroundAbortedError",
    "WardrobeError",
]
