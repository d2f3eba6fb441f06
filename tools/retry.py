"""Retrying executor wrapping one idempotent remote call."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from tools.backoff import BackoffPolicy
from tools.cancellation import CancellationToken, SleepFn, cancellable_sleep
from wardrobe_app.errors import OperationCancelledError, RetriesExhaustedError
from wardrobe_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)
T = TypeVar("T")


class ExecutorState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    BACKOFF = "backoff"
    FAILED = "failed"


StateObserver = Callable[[str, ExecutorState, int], None]


class RetryingExecutor:
    """Runs an operation, backing off and retrying while it is rate limited.

    The loop is bounded: a rate-limited failure on attempt ``n`` is retried
    after ``policy.delay(n)`` while ``n < policy.max_attempts``; after that
    :class:`RetriesExhaustedError` is raised. Other errors propagate untouched.
    """

    def __init__(
        self,
        policy: BackoffPolicy | None = None,
        sleep: SleepFn = asyncio.sleep,
        observer: StateObserver | None = None,
    ) -> None:
        self.policy = policy or BackoffPolicy()
        self._sleep = sleep
        self._observer = observer

    def _transition(self, label: str, state: ExecutorState, attempt: int) -> None:
        if self._observer:
            self._observer(label, state, attempt)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        label: str = "remote_call",
        cancel_token: Optional[CancellationToken] = None,
    ) -> T:
        attempt = 0
        self._transition(label, ExecutorState.IDLE, attempt)
        while True:
            if cancel_token:
                cancel_token.raise_if_cancelled(label)
            self._transition(label, ExecutorState.REQUESTING, attempt)
            try:
                result = await operation()
            except OperationCancelledError:
                raise
            except Exception as exc:
                if not self.policy.should_retry(exc):
                    self._transition(label, ExecutorState.FAILED, attempt)
                    log_event(
                        LOGGER,
                        logging.ERROR,
                        "remote_call_failed",
                        label=label,
                        attempt=attempt,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                    raise
                if attempt >= self.policy.max_attempts:
                    self._transition(label, ExecutorState.FAILED, attempt)
                    log_event(
                        LOGGER,
                        logging.ERROR,
                        "remote_call_retries_exhausted",
                        label=label,
                        attempts=attempt + 1,
                    )
                    raise RetriesExhaustedError(label, attempt + 1) from exc

                self._transition(label, ExecutorState.RATE_LIMITED, attempt)
                wait = self.policy.delay(attempt)
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "remote_call_rate_limited",
                    label=label,
                    attempt=attempt + 1,
                    max_attempts=self.policy.max_attempts,
                    retry_in_seconds=wait,
                )
                self._transition(label, ExecutorState.BACKOFF, attempt)
                await cancellable_sleep(wait, cancel_token, self._sleep, context=label)
                attempt += 1
                continue

            if cancel_token and cancel_token.cancelled:
                # The call finished after cancellation; its result is dropped.
                log_event(LOGGER, logging.INFO, "remote_call_result_discarded", label=label)
                cancel_token.raise_if_cancelled(label)
            self._transition(label, ExecutorState.SUCCESS, attempt)
            return result


__all__ = ["ExecutorState", "RetryingExecutor"]
