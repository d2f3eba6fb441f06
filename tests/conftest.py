"""Shared fakes for the wardrobe core tests."""

from __future__ import annotations

import base64
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from models.identity import Identity, Profile  # noqa: E402
from tools.stylist_service import StylistService  # noqa: E402
from wardrobe_app.errors import NotConfiguredError  # noqa: E402

PIXEL = "data:image/jpeg;base64," + base64.b64encode(b"pixel").decode("ascii")


class FakeClock:
    """Virtual time; ``sleep`` advances it instantly and records the delay."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeStylistService(StylistService):
    """Scriptable stand-in for the remote service.

    ``classify_results``/``suggest_results`` are queues of payloads or
    exceptions; ``view_failures`` maps a viewpoint prompt label to a queue of
    exceptions raised before that view succeeds.
    """

    def __init__(self, clock: FakeClock | None = None, configured: bool = True) -> None:
        self.clock = clock or FakeClock()
        self.configured = configured
        self.calls: List[Dict[str, Any]] = []
        self.classify_results: List[Any] = []
        self.suggest_results: List[Any] = []
        self.view_failures: Dict[str, List[Exception]] = {}
        self.view_duration = 1.5
        self.on_classify: Optional[Callable[[], None]] = None

    @property
    def is_configured(self) -> bool:
        return self.configured

    def _next(self, queue: List[Any], default: Any) -> Any:
        result = queue.pop(0) if queue else default
        if isinstance(result, Exception):
            raise result
        return result

    async def classify(self, image: bytes) -> Dict[str, Any]:
        self.calls.append({"call": "classify", "image": image})
        if not self.configured:
            raise NotConfiguredError()
        if self.on_classify:
            self.on_classify()
        return self._next(
            self.classify_results,
            {
                "category": "Top",
                "color": "Sage Green",
                "style": "Minimalist, Streetwear",
                "material": "Ribbed Cotton",
                "description": "A fitted knit top.",
            },
        )

    async def generate_view(
        self,
        reference: bytes,
        item_images: List[bytes],
        viewpoint_label: str,
        item_descriptions: List[str],
    ) -> bytes:
        start = self.clock.now
        record = {"call": "generate_view", "label": viewpoint_label, "start": start, "end": None}
        self.calls.append(record)
        if not self.configured:
            raise NotConfiguredError()
        failures = self.view_failures.get(viewpoint_label)
        if failures:
            raise failures.pop(0)
        self.clock.now += self.view_duration
        record["end"] = self.clock.now
        return viewpoint_label.encode("utf-8")

    async def suggest(self, prompt: str) -> Dict[str, Any]:
        self.calls.append({"call": "suggest", "prompt": prompt})
        if not self.configured:
            raise NotConfiguredError()
        return self._next(
            self.suggest_results, {"suggestion": "Wear the green top.", "recommendedItemIds": []}
        )

    def view_calls(self) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["call"] == "generate_view"]


class RateLimit(Exception):
    """Mimics an SDK error carrying an HTTP status."""

    def __init__(self, message: str = "Too many requests", status: Any = 429) -> None:
        super().__init__(message)
        self.status = status


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fake_service(clock: FakeClock) -> FakeStylistService:
    return FakeStylistService(clock)


@pytest.fixture()
def alice() -> Identity:
    return Identity(id="alice-1", display_name="Alice", email="alice@example.com")


@pytest.fixture()
def bob() -> Identity:
    return Identity(id="bob-2", display_name="Bob")


@pytest.fixture()
def profile() -> Profile:
    return Profile(
        name="Alice",
        height_cm=168,
        weight_kg=60,
        skin_tone="Warm olive",
        skin_tone_hex="#c68642",
        gender="Female",
        style_preference="Minimalist",
        body_photo=PIXEL,
    )
