"""Owner of the active identity and the scope key derived from it."""
from __future__ import annotations

import json
import logging
from typing import Callable, List, Optional

from memory.backing_store import KeyValueBackend
from models.identity import Identity
from wardrobe_app.errors import StorageError
from wardrobe_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)

GUEST_SCOPE = "guest"
SESSION_KEY = "wardrobe_session"

IdentityListener = Callable[[Optional[Identity], Optional[Identity]], None]


class ScopeController:
    """Tracks identity transitions and notifies subscribers.

    This is the only writer of the active scope. Listeners receive
    ``(previous, current)`` synchronously, in subscription order, after the
    new identity is in place.
    """

    def __init__(self, backend: KeyValueBackend | None = None) -> None:
        self._backend = backend
        self._identity: Optional[Identity] = None
        self._listeners: List[IdentityListener] = []

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def scope_key(self) -> str:
        return self._identity.id if self._identity else GUEST_SCOPE

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_identity(self, identity: Optional[Identity]) -> None:
        previous = self._identity
        if previous == identity:
            return
        self._identity = identity
        self._persist_session(identity)
        log_event(
            LOGGER,
            logging.INFO,
            "identity_changed",
            previous_scope=previous.id if previous else GUEST_SCOPE,
            scope=self.scope_key,
            authenticated=identity is not None,
        )
        for listener in list(self._listeners):
            listener(previous, identity)

    def sign_out(self) -> None:
        self.set_identity(None)

    def restore(self) -> Optional[Identity]:
        """Re-activate the identity saved by a previous session, if any."""

        if self._backend is None:
            return None
        try:
            raw = self._backend.get(SESSION_KEY)
        except StorageError as exc:
            LOGGER.warning("Could not read stored session", extra={"error": str(exc)})
            return None
        if not raw:
            return None
        try:
            identity = Identity.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable stored session", extra={"error": str(exc)})
            self._backend.remove(SESSION_KEY)
            return None
        self.set_identity(identity)
        return identity

    def _persist_session(self, identity: Optional[Identity]) -> None:
        if self._backend is None:
            return
        try:
            if identity is None:
                self._backend.remove(SESSION_KEY)
            else:
                self._backend.set(SESSION_KEY, json.dumps(identity.to_dict()))
        except StorageError as exc:
            LOGGER.warning("Could not persist session", extra={"error": str(exc)})


__all__ = ["GUEST_SCOPE", "SESSION_KEY", "IdentityListener", "ScopeController"]
