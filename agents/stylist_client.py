"""AI orchestration client: classification, suggestions and try-on renders."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import List, Optional

from agents.turnaround import DEFAULT_COOLDOWN_SECONDS, TurnaroundPipeline
from logic.prompts import build_suggestion_prompt
from logic.validation import parse_classification, parse_suggestion
from models.classification import ClassificationRecord
from models.clothing_item import ClothingItem
from models.identity import Profile
from models.outfit import OutfitSuggestion, TryOnImageSet, Viewpoint
from tools.backoff import BackoffPolicy
from tools.cancellation import CancellationToken, SleepFn
from tools.image_payload import decode_image, to_data_url
from tools.retry import RetryingExecutor
from tools.stylist_service import StylistService
from wardrobe_app.config import WardrobeConfig
from wardrobe_app.errors import NotConfiguredError, RemoteServiceError
from wardrobe_app.logging_config import get_logger, log_event, operation_context

LOGGER = get_logger(__name__)

OFFLINE_SUGGESTION = "AI Stylist is offline. Please configure the Gemini API key."
HIGH_TRAFFIC_SUGGESTION = (
    "I couldn't generate a suggestion right now due to high traffic. Try adding more items!"
)


class StylistClient:
    """Runs every remote call through a shared :class:`RetryingExecutor`."""

    def __init__(
        self,
        service: StylistService,
        policy: BackoffPolicy | None = None,
        *,
        sleep: SleepFn = asyncio.sleep,
        turnaround_cooldown: float = DEFAULT_COOLDOWN_SECONDS,
        image_timeout: float = 10.0,
    ) -> None:
        self.service = service
        self.executor = RetryingExecutor(policy=policy, sleep=sleep)
        self.turnaround_cooldown = turnaround_cooldown
        self.image_timeout = image_timeout
        self._sleep = sleep

    @classmethod
    def from_config(
        cls, config: WardrobeConfig, service: StylistService, sleep: SleepFn = asyncio.sleep
    ) -> "StylistClient":
        return cls(
            service,
            BackoffPolicy.from_config(config),
            sleep=sleep,
            turnaround_cooldown=config.turnaround_cooldown,
            image_timeout=config.request_timeout,
        )

    def is_configured(self) -> bool:
        return self.service.is_configured

    def _require_configured(self) -> None:
        if not self.service.is_configured:
            raise NotConfiguredError()

    async def _decode(self, payload: str | bytes) -> bytes:
        # decode_image may block on requests.get for http(s) references.
        return await asyncio.to_thread(decode_image, payload, timeout=self.image_timeout)

    async def classify(
        self, image: str | bytes, cancel_token: Optional[CancellationToken] = None
    ) -> ClassificationRecord:
        """Classify one garment image.

        Raises :class:`NotConfiguredError` without contacting the service when
        credentials are missing.
        """

        self._require_configured()
        with operation_context("stylist:classify"):
            payload = await self.executor.execute(
                partial(self.service.classify, await self._decode(image)),
                label="classify",
                cancel_token=cancel_token,
            )
            record = parse_classification(payload)
            log_event(
                LOGGER,
                logging.INFO,
                "classification_completed",
                category=record.category.value,
            )
            return record

    async def classify_or_manual(
        self, image: str | bytes, cancel_token: Optional[CancellationToken] = None
    ) -> ClassificationRecord:
        """Classify, or hand back an empty manual-entry record on any remote failure."""

        try:
            return await self.classify(image, cancel_token=cancel_token)
        except RemoteServiceError as exc:
            log_event(
                LOGGER,
                logging.WARNING,
                "classification_fallback_manual",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return ClassificationRecord.manual_entry(reason=str(exc))

    async def suggest_outfit(
        self,
        profile: Profile,
        items: List[ClothingItem],
        occasion: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> OutfitSuggestion:
        """Ask the stylist for an outfit; failures become a friendly message."""

        prompt = build_suggestion_prompt(profile, items, occasion)
        try:
            self._require_configured()
            payload = await self.executor.execute(
                partial(self.service.suggest, prompt),
                label="suggest",
                cancel_token=cancel_token,
            )
            return parse_suggestion(payload, [item.id for item in items])
        except NotConfiguredError:
            LOGGER.warning("Suggestion skipped: stylist service not configured")
            return OutfitSuggestion(suggestion=OFFLINE_SUGGESTION, ai_generated=False)
        except RemoteServiceError as exc:
            log_event(
                LOGGER,
                logging.WARNING,
                "suggestion_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return OutfitSuggestion(suggestion=HIGH_TRAFFIC_SUGGESTION, ai_generated=False)

    async def _try_on_inputs(self, reference_photo: str | bytes, items: List[ClothingItem]):
        if not items:
            raise ValueError("Select at least one clothing item")
        if not reference_photo:
            raise ValueError("A full-body reference photo is required for try-on")
        reference = await self._decode(reference_photo)
        item_images = [await self._decode(item.image) for item in items]
        descriptions = [item.summary() for item in items]
        return reference, item_images, descriptions

    async def generate_try_on(
        self,
        reference_photo: str | bytes,
        items: List[ClothingItem],
        cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        """Render a single front view and return it as a PNG data URL."""

        self._require_configured()
        reference, item_images, descriptions = await self._try_on_inputs(reference_photo, items)
        with operation_context("stylist:generate_try_on"):
            image = await self.executor.execute(
                partial(
                    self.service.generate_view,
                    reference,
                    item_images,
                    Viewpoint.FRONT.prompt_label,
                    descriptions,
                ),
                label="try_on:front",
                cancel_token=cancel_token,
            )
            return to_data_url(image)

    async def generate_turnaround(
        self,
        reference_photo: str | bytes,
        items: List[ClothingItem],
        cancel_token: Optional[CancellationToken] = None,
    ) -> TryOnImageSet:
        """Render all four viewpoints sequentially; all-or-nothing.

        Raises :class:`NotConfiguredError` before touching any image when
        credentials are missing, :class:`TurnaroundAbortedError` on the first
        unrecoverable viewpoint failure and :class:`OperationCancelledError`
        if cancelled.
        """

        self._require_configured()
        reference, item_images, descriptions = await self._try_on_inputs(reference_photo, items)
        pipeline = TurnaroundPipeline(
            self.service, self.executor, cooldown=self.turnaround_cooldown, sleep=self._sleep
        )
        with operation_context("stylist:generate_turnaround"):
            log_event(
                LOGGER, logging.INFO, "turnaround_started", item_count=len(items)
            )
            result = await pipeline.run(reference, item_images, descriptions, cancel_token=cancel_token)
            log_event(LOGGER, logging.INFO, "turnaround_completed", item_count=len(items))
            return result


__all__ = ["HIGH_TRAFFIC_SUGGESTION", "OFFLINE_SUGGESTION", "StylistClient"]
