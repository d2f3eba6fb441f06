"""Four-viewpoint try-on generation as an explicit state machine."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from functools import partial
from typing import Dict, List, Optional

from models.outfit import TURNAROUND_ORDER, TryOnImageSet, Viewpoint
from tools.cancellation import CancellationToken, SleepFn, cancellable_sleep
from tools.image_payload import to_data_url
from tools.retry import RetryingExecutor
from tools.stylist_service import StylistService
from wardrobe_app.errors import OperationCancelledError, TurnaroundAbortedError
from wardrobe_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)
DEFAULT_COOLDOWN_SECONDS = 4.0


class TurnaroundState(str, Enum):
    IDLE = "idle"
    FRONT = "front"
    LEFT = "left"
    RIGHT = "right"
    BACK = "back"
    PAUSE = "pause"
    COMPLETE = "complete"
    ABORTED = "aborted"
    CANCELLED = "cancelled"


VIEW_STATES = {
    Viewpoint.FRONT: TurnaroundState.FRONT,
    Viewpoint.LEFT: TurnaroundState.LEFT,
    Viewpoint.RIGHT: TurnaroundState.RIGHT,
    Viewpoint.BACK: TurnaroundState.BACK,
}
TERMINAL_STATES = {TurnaroundState.COMPLETE, TurnaroundState.ABORTED, TurnaroundState.CANCELLED}


class TurnaroundPipeline:
    """Generates front, left, right and back views one at a time.

    Only one remote call is in flight at any moment. After every successful
    viewpoint except the last the pipeline pauses for ``cooldown`` seconds,
    on top of any backoff the executor applied inside a single viewpoint.
    The first failure aborts the batch and every rendered view is dropped.

    A pipeline instance runs once; build a new one to retry from the front
    view.
    """

    def __init__(
        self,
        service: StylistService,
        executor: RetryingExecutor,
        cooldown: float = DEFAULT_COOLDOWN_SECONDS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.service = service
        self.executor = executor
        self.cooldown = cooldown
        self._sleep = sleep
        self.state = TurnaroundState.IDLE
        self.history: List[TurnaroundState] = [TurnaroundState.IDLE]

    def _enter(self, state: TurnaroundState) -> None:
        self.state = state
        self.history.append(state)
        log_event(LOGGER, logging.DEBUG, "turnaround_state", state=state.value)

    async def run(
        self,
        reference: bytes,
        item_images: List[bytes],
        item_descriptions: List[str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> TryOnImageSet:
        if self.state is not TurnaroundState.IDLE:
            raise RuntimeError(f"Turnaround pipeline already ran (state={self.state.value})")

        views: Dict[Viewpoint, str] = {}
        viewpoint = TURNAROUND_ORDER[0]
        try:
            for index, viewpoint in enumerate(TURNAROUND_ORDER):
                if index:
                    self._enter(TurnaroundState.PAUSE)
                    await cancellable_sleep(
                        self.cooldown, cancel_token, self._sleep, context="turnaround pause"
                    )
                self._enter(VIEW_STATES[viewpoint])
                image = await self.executor.execute(
                    partial(
                        self.service.generate_view,
                        reference,
                        item_images,
                        viewpoint.prompt_label,
                        item_descriptions,
                    ),
                    label=f"turnaround:{viewpoint.value}",
                    cancel_token=cancel_token,
                )
                views[viewpoint] = to_data_url(image)
        except OperationCancelledError:
            views.clear()
            self._enter(TurnaroundState.CANCELLED)
            log_event(LOGGER, logging.INFO, "turnaround_cancelled", viewpoint=viewpoint.value)
            raise
        except Exception as exc:
            views.clear()
            self._enter(TurnaroundState.ABORTED)
            log_event(
                LOGGER,
                logging.ERROR,
                "turnaround_aborted",
                viewpoint=viewpoint.value,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise TurnaroundAbortedError(viewpoint.value, str(exc)) from exc

        self._enter(TurnaroundState.COMPLETE)
        return TryOnImageSet.from_views(views)


__all__ = ["TERMINAL_STATES", "TurnaroundPipeline", "TurnaroundState"]
