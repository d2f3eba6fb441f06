"""Wardrobe core bootstrap."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Tuple

from agents.stylist_client import StylistClient
from memory.backing_store import KeyValueBackend, build_backend
from memory.scope_controller import ScopeController
from memory.wardrobe_store import WardrobeStore, WriteResult
from models.classification import ClassificationRecord
from models.clothing_item import ClothingItem, new_entity_id
from models.identity import Identity
from models.outfit import Outfit, OutfitSuggestion, TryOnImageSet
from tools.cancellation import CancellationToken, SleepFn
from tools.stylist_service import GeminiStylistService, StylistService
from wardrobe_app.config import WardrobeConfig
from wardrobe_app.logging_config import configure_logging, get_logger, log_event, operation_context

LOGGER = get_logger(__name__)
MIN_ITEMS_FOR_SUGGESTION = 2


class WardrobeApp:
    """Wires the scope controller, collection store and stylist client together.

    The UI layer talks to this facade; it reads state from ``store`` and calls
    the async methods below for anything that needs the stylist service.
    """

    def __init__(
        self,
        config: WardrobeConfig | None = None,
        *,
        backend: KeyValueBackend | None = None,
        service: StylistService | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.config = config or WardrobeConfig.from_env()
        configure_logging()

        self.backend = backend or build_backend(self.config)
        self.controller = ScopeController(self.backend)
        self.store = WardrobeStore(self.backend, self.controller)
        self.service = service or GeminiStylistService.from_config(self.config)
        self.client = StylistClient.from_config(self.config, self.service, sleep=sleep)

    # -- identity ---------------------------------------------------------

    def sign_in(self, identity: Identity) -> None:
        self.controller.set_identity(identity)

    def sign_out(self) -> None:
        self.controller.sign_out()

    def restore_session(self) -> Optional[Identity]:
        return self.controller.restore()

    def is_ai_configured(self) -> bool:
        return self.client.is_configured()

    # -- catalogue --------------------------------------------------------

    async def analyze_upload(
        self, image: str, cancel_token: Optional[CancellationToken] = None
    ) -> ClassificationRecord:
        """Classify an uploaded image, falling back to manual entry."""

        return await self.client.classify_or_manual(image, cancel_token=cancel_token)

    async def add_classified_item(
        self, image: str, cancel_token: Optional[CancellationToken] = None
    ) -> Tuple[ClothingItem, WriteResult]:
        """Classify ``image`` and add it to the catalogue of the scope active at call time.

        If the identity changes while classification is running the new item
        is discarded rather than written into the other identity's catalogue.
        """

        scope = self.store.scope_key
        with operation_context("app:add_classified_item"):
            record = await self.analyze_upload(image, cancel_token=cancel_token)
            item = record.to_item(image)
            result = self.store.add_item(item, expected_scope=scope)
            log_event(
                LOGGER,
                logging.INFO,
                "app_item_added",
                ai_generated=record.ai_generated,
                applied=result.applied,
                persisted=result.persisted,
            )
            return item, result

    # -- outfits ----------------------------------------------------------

    async def suggest_look(
        self, occasion: str, cancel_token: Optional[CancellationToken] = None
    ) -> OutfitSuggestion:
        profile = self.store.profile
        if profile is None:
            raise ValueError("Create a profile before asking for suggestions")
        if len(self.store.clothes) < MIN_ITEMS_FOR_SUGGESTION:
            raise ValueError(f"Add at least {MIN_ITEMS_FOR_SUGGESTION} items before asking for suggestions")
        return await self.client.suggest_outfit(
            profile, list(self.store.clothes), occasion, cancel_token=cancel_token
        )

    def _resolve_items(self, item_ids: List[str]) -> List[ClothingItem]:
        items = [self.store.get_item(item_id) for item_id in item_ids]
        return [item for item in items if item is not None]

    async def generate_turnaround_for(
        self, item_ids: List[str], cancel_token: Optional[CancellationToken] = None
    ) -> TryOnImageSet:
        profile = self.store.profile
        if profile is None or not profile.body_photo:
            raise ValueError("Please upload a full-body photo in your profile first")
        return await self.client.generate_turnaround(
            profile.body_photo, self._resolve_items(item_ids), cancel_token=cancel_token
        )

    def save_look(
        self,
        item_ids: List[str],
        *,
        ai_feedback: Optional[str] = None,
        try_on_images: Optional[TryOnImageSet] = None,
        notes: Optional[str] = None,
        expected_scope: Optional[str] = None,
    ) -> Tuple[Outfit, WriteResult]:
        if not item_ids:
            raise ValueError("Select at least one clothing item")
        outfit = Outfit(
            id=new_entity_id(),
            item_ids=list(item_ids),
            ai_feedback=ai_feedback,
            notes=notes,
            try_on_images=try_on_images,
        )
        return outfit, self.store.save_outfit(outfit, expected_scope=expected_scope)

    async def create_look_with_turnaround(
        self,
        item_ids: List[str],
        *,
        ai_feedback: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Tuple[Outfit, WriteResult]:
        """Render a turnaround and save it with the outfit; nothing is saved on failure."""

        scope = self.store.scope_key
        images = await self.generate_turnaround_for(item_ids, cancel_token=cancel_token)
        return self.save_look(
            item_ids, ai_feedback=ai_feedback, try_on_images=images, expected_scope=scope
        )


__all__ = ["WardrobeApp"]
