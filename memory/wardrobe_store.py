"""Per-identity collection store with write-then-best-effort-persist semantics."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from memory.backing_store import KeyValueBackend
from memory.scope_controller import GUEST_SCOPE, ScopeController
from models.clothing_item import ClothingItem, new_entity_id
from models.feed import CalendarEvent, SharedLook
from models.identity import Identity, Profile
from models.outfit import Outfit, TryOnImageSet
from wardrobe_app.errors import DuplicateEntityError, StorageError
from wardrobe_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)

PROFILE = "profile"
CLOTHES = "clothes"
OUTFITS = "outfits"
CALENDAR = "calendar"
SOCIAL = "social"
SOCIAL_KEY = "wardrobe_social"
PER_IDENTITY_COLLECTIONS = (PROFILE, CLOTHES, OUTFITS, CALENDAR)

Codec = Tuple[Callable[[Any], Any], Callable[[Any], Any]]

_CODECS: Dict[str, Codec] = {
    PROFILE: (
        lambda profile: profile.to_dict() if profile else None,
        lambda data: Profile.from_dict(data) if data else None,
    ),
    CLOTHES: (
        lambda items: [item.to_dict() for item in items],
        lambda data: [ClothingItem.from_dict(entry) for entry in data or []],
    ),
    OUTFITS: (
        lambda outfits: [outfit.to_dict() for outfit in outfits],
        lambda data: [Outfit.from_dict(entry) for entry in data or []],
    ),
    CALENDAR: (
        lambda events: [event.to_dict() for event in events],
        lambda data: [CalendarEvent.from_dict(entry) for entry in data or []],
    ),
    SOCIAL: (
        lambda looks: [look.to_dict() for look in looks],
        lambda data: [SharedLook.from_dict(entry) for entry in data or []],
    ),
}


@dataclass
class StoreWarning:
    """Non-fatal storage problem surfaced to the UI layer."""

    collection: str
    scope_key: str
    message: str
    error: Optional[Exception] = None


@dataclass
class WriteResult:
    """Outcome of one mutator call.

    ``applied`` means the in-memory state changed; ``persisted`` means the
    backing store accepted the write as well.
    """

    applied: bool
    persisted: bool
    warning: Optional[StoreWarning] = None
    discarded_reason: Optional[str] = None


ChangeListener = Callable[[str], None]
WarningListener = Callable[[StoreWarning], None]


class WardrobeStore:
    """In-memory collections for the active scope, mirrored to a backend.

    Every mutator updates memory first, notifies change listeners, then tries
    to persist. A failed write never rolls back the in-memory change; it is
    reported as a :class:`StoreWarning` instead.
    """

    def __init__(self, backend: KeyValueBackend, controller: ScopeController | None = None) -> None:
        self.backend = backend
        self._controller: Optional[ScopeController] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._change_listeners: List[ChangeListener] = []
        self._warning_listeners: List[WarningListener] = []
        self.loaded_scope: Optional[str] = None
        self.profile: Optional[Profile] = None
        self.clothes: List[ClothingItem] = []
        self.outfits: List[Outfit] = []
        self.calendar: List[CalendarEvent] = []
        self.shared_looks: List[SharedLook] = []
        if controller is not None:
            self.attach(controller)

    # -- wiring -----------------------------------------------------------

    def attach(self, controller: ScopeController) -> None:
        """Follow ``controller``'s identity and load its current scope."""

        if self._unsubscribe:
            self._unsubscribe()
        self._controller = controller
        self._unsubscribe = controller.subscribe(self._on_identity_change)
        self._on_identity_change(None, controller.identity)

    @property
    def scope_key(self) -> str:
        return self._controller.scope_key if self._controller else GUEST_SCOPE

    def on_change(self, listener: ChangeListener) -> None:
        self._change_listeners.append(listener)

    def on_warning(self, listener: WarningListener) -> None:
        self._warning_listeners.append(listener)

    def _notify(self, collection: str) -> None:
        for listener in list(self._change_listeners):
            listener(collection)

    def _warn(self, warning: StoreWarning) -> None:
        log_event(
            LOGGER,
            logging.WARNING,
            "store_warning",
            collection=warning.collection,
            scope=warning.scope_key,
            warning=warning.message,
            error=str(warning.error) if warning.error else None,
        )
        for listener in list(self._warning_listeners):
            listener(warning)

    def _on_identity_change(self, previous: Optional[Identity], current: Optional[Identity]) -> None:
        self.clear()
        if current is None:
            self.loaded_scope = None
            try:
                self.shared_looks = self.load(GUEST_SCOPE, SOCIAL)
            except StorageError as exc:
                self._warn(StoreWarning(SOCIAL, GUEST_SCOPE, "Failed to load the shared feed", exc))
            for collection in PER_IDENTITY_COLLECTIONS + (SOCIAL,):
                self._notify(collection)
            return
        self.load_scope(self.scope_key)

    # -- raw load/save ----------------------------------------------------

    @staticmethod
    def storage_key(scope_key: str, collection: str) -> str:
        if collection == SOCIAL:
            return SOCIAL_KEY
        if collection not in PER_IDENTITY_COLLECTIONS:
            raise ValueError(f"Unknown collection '{collection}'")
        return f"{scope_key}_{collection}"

    @staticmethod
    def encode(collection: str, value: Any) -> str:
        encoder, _ = _CODECS[collection]
        return json.dumps(encoder(value))

    @staticmethod
    def decode(collection: str, raw: Optional[str]) -> Any:
        _, decoder = _CODECS[collection]
        return decoder(json.loads(raw) if raw else None)

    def load(self, scope_key: str, collection: str) -> Any:
        """Read one collection for ``scope_key``; absent data is empty.

        Raises :class:`StorageError` if the stored value cannot be decoded.
        """

        raw = self.backend.get(self.storage_key(scope_key, collection))
        try:
            return self.decode(collection, raw)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            raise StorageError(f"Stored {collection} for scope {scope_key!r} is unreadable: {exc}") from exc

    def save(self, scope_key: str, collection: str, value: Any) -> None:
        """Write one collection; raises :class:`StorageError` on failure."""

        self.backend.set(self.storage_key(scope_key, collection), self.encode(collection, value))

    def clear(self) -> None:
        """Drop all per-identity state from memory. The social feed stays."""

        self.profile = None
        self.clothes = []
        self.outfits = []
        self.calendar = []

    def load_scope(self, scope_key: str) -> None:
        """Replace in-memory state with everything stored for ``scope_key``."""

        self.clear()
        loaded: Dict[str, Any] = {}
        for collection in PER_IDENTITY_COLLECTIONS + (SOCIAL,):
            try:
                loaded[collection] = self.load(scope_key, collection)
            except StorageError as exc:
                self._warn(StoreWarning(collection, scope_key, "Failed to load your data", exc))
        self.profile = loaded.get(PROFILE)
        self.clothes = loaded.get(CLOTHES) or []
        self.outfits = loaded.get(OUTFITS) or []
        self.calendar = loaded.get(CALENDAR) or []
        if SOCIAL in loaded:
            self.shared_looks = loaded[SOCIAL]
        self.loaded_scope = scope_key
        log_event(
            LOGGER,
            logging.INFO,
            "scope_loaded",
            scope=scope_key,
            clothes=len(self.clothes),
            outfits=len(self.outfits),
            events=len(self.calendar),
        )
        for collection in PER_IDENTITY_COLLECTIONS + (SOCIAL,):
            self._notify(collection)

    # -- mutation plumbing ------------------------------------------------

    def _begin(self, operation: str, expected_scope: Optional[str]) -> Optional[str]:
        """Read the active scope once; None means the mutation must be dropped."""

        scope = self.scope_key
        if expected_scope is not None and expected_scope != scope:
            log_event(
                LOGGER,
                logging.WARNING,
                "mutation_discarded",
                operation=operation,
                expected_scope=expected_scope,
                active_scope=scope,
            )
            return None
        return scope

    @staticmethod
    def _discarded(expected_scope: Optional[str]) -> WriteResult:
        return WriteResult(
            applied=False,
            persisted=False,
            discarded_reason=f"identity changed since the operation started (scope {expected_scope!r})",
        )

    def _persist(self, scope: str, collection: str, value: Any, failure_message: str) -> WriteResult:
        self._notify(collection)
        try:
            self.save(scope, collection, value)
        except StorageError as exc:
            warning = StoreWarning(collection, scope, failure_message, exc)
            self._warn(warning)
            return WriteResult(applied=True, persisted=False, warning=warning)
        log_event(LOGGER, logging.INFO, "collection_saved", collection=collection, scope=scope)
        return WriteResult(applied=True, persisted=True)

    # -- profile ----------------------------------------------------------

    def set_profile(self, profile: Profile, *, expected_scope: Optional[str] = None) -> WriteResult:
        scope = self._begin("set_profile", expected_scope)
        if scope is None:
            return self._discarded(expected_scope)
        self.profile = profile
        return self._persist(scope, PROFILE, profile, "Could not save profile. Storage full?")

    # -- clothing catalogue -----------------------------------------------

    def get_item(self, item_id: str) -> Optional[ClothingItem]:
        return next((item for item in self.clothes if item.id == item_id), None)

    def add_item(self, item: ClothingItem, *, expected_scope: Optional[str] = None) -> WriteResult:
        scope = self._begin("add_item", expected_scope)
        if scope is None:
            return self._discarded(expected_scope)
        if self.get_item(item.id) is not None:
            raise DuplicateEntityError(f"Clothing item {item.id!r} already exists")
        self.clothes = [item, *self.clothes]
        return self._persist(scope, CLOTHES, self.clothes, "Storage full! Item available for this session only.")

    def remove_item(self, item_id: str, *, expected_scope: Optional[str] = None) -> WriteResult:
        """Delete a catalogue item. Outfits keep their (now dangling) reference."""

        scope = self._begin("remove_item", expected_scope)
        if scope is None:
            return self._discarded(expected_scope)
        remaining = [item for item in self.clothes if item.id != item_id]
        if len(remaining) == len(self.clothes):
            return WriteResult(applied=False, persisted=False)
        self.clothes = remaining
        return self._persist(scope, CLOTHES, self.clothes, "Could not save closet changes. Storage full?")

    # -- outfits ----------------------------------------------------------

    def get_outfit(self, outfit_id: str) -> Optional[Outfit]:
        return next((outfit for outfit in self.outfits if outfit.id == outfit_id), None)

    def resolve_outfit_items(self, outfit: Outfit) -> List[ClothingItem]:
        """Items an outfit references that still exist, in outfit order."""

        by_id = {item.id: item for item in self.clothes}
        return [by_id[item_id] for item_id in outfit.item_ids if item_id in by_id]

    def save_outfit(self, outfit: Outfit, *, expected_scope: Optional[str] = None) -> WriteResult:
        scope = self._begin("save_outfit", expected_scope)
        if scope is None:
            return self._discarded(expected_scope)
        if self.get_outfit(outfit.id) is not None:
            raise DuplicateEntityError(f"Outfit {outfit.id!r} already exists")
        self.outfits = [outfit, *self.outfits]
        return self._persist(scope, OUTFITS, self.outfits, "Storage full! Outfit saved for this session only.")

    def update_outfit(
        self,
        outfit_id: str,
        *,
        try_on_images: Optional[TryOnImageSet] = None,
        ai_feedback: Optional[str] = None,
        notes: Optional[str] = None,
        expected_scope: Optional[str] = None,
    ) -> WriteResult:
        """Replace optional fields of a saved outfit; item references never change."""

        scope = self._begin("update_outfit", expected_scope)
        if scope is None:
            return self._discarded(expected_scope)
        current = self.get_outfit(outfit_id)
        if current is None:
            raise KeyError(f"Unknown outfit {outfit_id!r}")
        updated = Outfit(
            id=current.id,
            item_ids=list(current.item_ids),
            created_at=current.created_at,
            ai_feedback=ai_feedback if ai_feedback is not None else current.ai_feedback,
            notes=notes if notes is not None else current.notes,
            try_on_images=try_on_images if try_on_images is not None else current.try_on_images,
        )
        self.outfits = [updated if outfit.id == outfit_id else outfit for outfit in self.outfits]
        return self._persist(scope, OUTFITS, self.outfits, "Storage full! Outfit changes kept for this session only.")

    def delete_outfit(self, outfit_id: str, *, expected_scope: Optional[str] = None) -> WriteResult:
        """Delete a saved outfit. Calendar events pointing at it are kept."""

        scope = self._begin("delete_outfit", expected_scope)
        if scope is None:
            return self._discarded(expected_scope)
        remaining = [outfit for outfit in self.outfits if outfit.id != outfit_id]
        if len(remaining) == len(self.outfits):
            return WriteResult(applied=False, persisted=False)
        self.outfits = remaining
        return self._persist(scope, OUTFITS, self.outfits, "Could not save outfit changes. Storage full?")

    # -- calendar ---------------------------------------------------------

    def add_event(self, event: CalendarEvent, *, expected_scope: Optional[str] = None) -> WriteResult:
        scope = self._begin("add_event", expected_scope)
        if scope is None:
            return self._discarded(expected_scope)
        self.calendar = [*self.calendar, event]
        return self._persist(scope, CALENDAR, self.calendar, "Could not save calendar. Storage full?")

    def resolve_event_outfit(self, event: CalendarEvent) -> Optional[Outfit]:
        return self.get_outfit(event.outfit_id)

    def events_on(self, day: str) -> List[CalendarEvent]:
        return [event for event in self.calendar if event.date.startswith(day)]

    # -- social feed (global, not scope keyed) ----------------------------

    def get_look(self, look_id: str) -> Optional[SharedLook]:
        return next((look for look in self.shared_looks if look.id == look_id), None)

    def share_look(self, look: SharedLook) -> WriteResult:
        if self.get_look(look.id) is not None:
            raise DuplicateEntityError(f"Shared look {look.id!r} already exists")
        self.shared_looks = [look, *self.shared_looks]
        return self._persist(GUEST_SCOPE, SOCIAL, self.shared_looks, "Could not share look. Storage full?")

    def share_outfit(self, outfit_id: str, author: str | None = None) -> Tuple[SharedLook, WriteResult]:
        """Post a snapshot of a saved outfit, with its items resolved now."""

        outfit = self.get_outfit(outfit_id)
        if outfit is None:
            raise KeyError(f"Unknown outfit {outfit_id!r}")
        if author is None:
            author = self.profile.name if self.profile and self.profile.name else "Anonymous"
        look = SharedLook(
            id=new_entity_id(),
            author=author,
            outfit=Outfit.from_dict(outfit.to_dict()),
            items=[ClothingItem.from_dict(item.to_dict()) for item in self.resolve_outfit_items(outfit)],
        )
        return look, self.share_look(look)

    def like_look(self, look_id: str) -> WriteResult:
        look = self.get_look(look_id)
        if look is None:
            raise KeyError(f"Unknown shared look {look_id!r}")
        look.likes += 1
        return self._persist(GUEST_SCOPE, SOCIAL, self.shared_looks, "Could not save like. Storage full?")

    def comment_on_look(self, look_id: str, comment: str) -> WriteResult:
        look = self.get_look(look_id)
        if look is None:
            raise KeyError(f"Unknown shared look {look_id!r}")
        text = comment.strip()
        if not text:
            raise ValueError("Comment must not be empty")
        look.comments.append(text)
        return self._persist(GUEST_SCOPE, SOCIAL, self.shared_looks, "Could not save comment. Storage full?")


__all__ = [
    "CALENDAR",
    "CLOTHES",
    "OUTFITS",
    "PER_IDENTITY_COLLECTIONS",
    "PROFILE",
    "SOCIAL",
    "SOCIAL_KEY",
    "StoreWarning",
    "WardrobeStore",
    "WriteResult",
]
