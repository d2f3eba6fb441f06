"""Backoff policy classification and delay schedule."""

from http import HTTPStatus

import pytest

from conftest import RateLimit
from tools import backoff
from tools.backoff import BackoffPolicy, is_rate_limited
from wardrobe_app.errors import NotConfiguredError, RateLimitedError, TerminalServiceError


@pytest.mark.parametrize("attempt", range(5))
def test_delay_follows_exponential_formula(attempt: int) -> None:
    assert backoff.delay(attempt) == 5.0 * 1.5 ** attempt


def test_schedule_matches_documented_waits() -> None:
    assert BackoffPolicy().schedule() == [5.0, 7.5, 11.25, 16.875, 25.3125]


@pytest.mark.parametrize("attempt", [-1, 5, 6])
def test_delay_rejects_attempts_outside_budget(attempt: int) -> None:
    with pytest.raises(ValueError):
        backoff.delay(attempt)


@pytest.mark.parametrize(
    "error",
    [
        RateLimitedError("slow down"),
        RateLimit(status=429),
        RateLimit(status=HTTPStatus.TOO_MANY_REQUESTS),
        RateLimit("denied", status="RESOURCE_EXHAUSTED"),
        RuntimeError("429 Too Many Requests"),
        RuntimeError("You exceeded your current quota"),
    ],
)
def test_rate_limited_errors_are_retryable(error: Exception) -> None:
    assert backoff.should_retry(error) is True


@pytest.mark.parametrize(
    "error",
    [
        TerminalServiceError("No response from AI"),
        RateLimit("bad request", status=400),
        ValueError("broken payload"),
    ],
)
def test_other_errors_are_terminal(error: Exception) -> None:
    assert backoff.should_retry(error) is False


def test_missing_credentials_never_retry_even_with_quota_text() -> None:
    assert is_rate_limited(NotConfiguredError("quota project has no API key")) is False


def test_policy_validates_constants() -> None:
    with pytest.raises(ValueError):
        BackoffPolicy(multiplier=0.5)


@pytest.mark.parametrize(
    "message",
    [
        "Service returned invalid JSON: Expecting value: line 1 column 430 (char 429)",
        "Gemini request failed: quota project not set",
    ],
)
def test_terminal_errors_are_never_retried_despite_markers(message: str) -> None:
    assert backoff.should_retry(TerminalServiceError(message)) is False
