"""Backoff policy for rate-limited stylist service calls.

The policy is pure: it classifies errors and computes delays, it never waits.
Delays are expressed in seconds.
"""

from __future__ import annotations

from dataclasses import dataclass

from wardrobe_app.errors import NotConfiguredError, RateLimitedError, TerminalServiceError

RATE_LIMIT_STATUSES = {"RESOURCE_EXHAUSTED", "TOO_MANY_REQUESTS"}
RATE_LIMIT_MARKERS = ("429", "quota", "resource_exhausted", "too many requests")


def _is_rate_limit_status(value: object) -> bool:
    if value is None or callable(value):
        return False
    if isinstance(value, int) and not isinstance(value, bool):
        return value == 429
    name = getattr(value, "name", value)
    return str(name).upper() in RATE_LIMIT_STATUSES


def is_rate_limited(error: BaseException) -> bool:
    """Return True when ``error`` means the quota is momentarily exhausted."""

    if isinstance(error, (NotConfiguredError, TerminalServiceError)):
        return False
    if isinstance(error, RateLimitedError):
        return True
    for attribute in ("status", "code", "status_code", "grpc_status_code"):
        if _is_rate_limit_status(getattr(error, attribute, None)):
            return True
    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff: ``base_delay * multiplier ** attempt``."""

    base_delay: float = 5.0
    multiplier: float = 1.5
    max_attempts: int = 5

    def __post_init__(self) -> None:
        if self.base_delay < 0 or self.multiplier < 1 or self.max_attempts < 0:
            raise ValueError("BackoffPolicy needs base_delay >= 0, multiplier >= 1, max_attempts >= 0")

    @classmethod
    def from_config(cls, config) -> "BackoffPolicy":
        return cls(
            base_delay=config.retry_base_delay,
            multiplier=config.retry_multiplier,
            max_attempts=config.retry_max_attempts,
        )

    def should_retry(self, error: BaseException) -> bool:
        return is_rate_limited(error)

    def delay(self, attempt: int) -> float:
        if not 0 <= attempt < self.max_attempts:
            raise ValueError(f"attempt must be in 0..{self.max_attempts - 1}, got {attempt}")
        return self.base_delay * self.multiplier ** attempt

    def schedule(self) -> list[float]:
        return [self.delay(attempt) for attempt in range(self.max_attempts)]


DEFAULT_POLICY = BackoffPolicy()


def should_retry(error: BaseException) -> bool:
    return DEFAULT_POLICY.should_retry(error)


def delay(attempt: int) -> float:
    return DEFAULT_POLICY.delay(attempt)


__all__ = ["BackoffPolicy", "DEFAULT_POLICY", "delay", "is_rate_limited", "should_retry"]
