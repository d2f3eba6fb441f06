"""Stylist client: classification, fallbacks, suggestions and try-on."""

import asyncio
import time
from types import SimpleNamespace

import pytest

from agents.stylist_client import HIGH_TRAFFIC_SUGGESTION, OFFLINE_SUGGESTION, StylistClient
from conftest import PIXEL, FakeClock, FakeStylistService, RateLimit
from models.clothing_item import ClothingItem
from models.identity import Profile
from models.outfit import TryOnImageSet, Viewpoint
from models.taxonomy import ClothingCategory
from tools import image_payload
from wardrobe_app.errors import NotConfiguredError


def _client(service: FakeStylistService, clock: FakeClock) -> StylistClient:
    return StylistClient(service, sleep=clock.sleep)


def _items() -> list[ClothingItem]:
    return [
        ClothingItem(id="top-1", image=PIXEL, category="Top", color="Red", description="Silk blouse"),
        ClothingItem(id="bottom-1", image=PIXEL, category="Bottom", color="Blue", description="Jeans"),
    ]


def test_classify_parses_structured_fields(fake_service: FakeStylistService, clock: FakeClock) -> None:
    record = asyncio.run(_client(fake_service, clock).classify(PIXEL))

    assert record.category is ClothingCategory.TOP
    assert record.color == "Sage Green"
    assert record.style_tags == ["Minimalist", "Streetwear"]
    assert record.material_tags == ["Ribbed Cotton"]
    assert record.ai_generated is True
    assert fake_service.calls[0]["image"] == b"pixel"


def test_classify_coerces_unknown_category(fake_service: FakeStylistService, clock: FakeClock) -> None:
    fake_service.classify_results.append({"category": "Jacket", "color": None, "style": ["Preppy"]})

    record = asyncio.run(_client(fake_service, clock).classify(PIXEL))

    assert record.category is ClothingCategory.OUTERWEAR
    assert record.color == ""
    assert record.style_tags == ["Preppy"]


def test_classify_without_credentials_fails_fast(clock: FakeClock) -> None:
    service = FakeStylistService(clock, configured=False)

    with pytest.raises(NotConfiguredError):
        asyncio.run(_client(service, clock).classify(PIXEL))
    assert service.calls == []
    assert clock.sleeps == []


def test_not_configured_falls_back_to_manual_entry(clock: FakeClock) -> None:
    service = FakeStylistService(clock, configured=False)

    record = asyncio.run(_client(service, clock).classify_or_manual(PIXEL))

    assert record.ai_generated is False
    assert record.category is ClothingCategory.TOP
    assert record.color == ""
    assert record.style_tags == [] and record.material_tags == []
    assert "not configured" in (record.fallback_reason or "")


def test_exhausted_classification_also_falls_back(fake_service: FakeStylistService, clock: FakeClock) -> None:
    fake_service.classify_results.extend(RateLimit() for _ in range(6))

    record = asyncio.run(_client(fake_service, clock).classify_or_manual(PIXEL))

    assert record.ai_generated is False
    assert len(clock.sleeps) == 5


def test_suggestion_filters_unknown_item_ids(
    fake_service: FakeStylistService, clock: FakeClock, profile: Profile
) -> None:
    fake_service.suggest_results.append(
        {"suggestion": "Pair the blouse with jeans.", "recommendedItemIds": ["top-1", "ghost"]}
    )

    suggestion = asyncio.run(_client(fake_service, clock).suggest_outfit(profile, _items(), "Brunch"))

    assert suggestion.recommended_item_ids == ["top-1"]
    assert suggestion.ai_generated is True
    prompt = fake_service.calls[0]["prompt"]
    assert "Brunch" in prompt and "168cm" in prompt and "Minimalist" in prompt


def test_suggestion_offline_and_high_traffic_messages(clock: FakeClock, profile: Profile) -> None:
    offline = FakeStylistService(clock, configured=False)
    assert asyncio.run(_client(offline, clock).suggest_outfit(profile, _items(), "Work")).suggestion == (
        OFFLINE_SUGGESTION
    )

    busy = FakeStylistService(clock)
    busy.suggest_results.extend(RateLimit() for _ in range(6))
    result = asyncio.run(_client(busy, clock).suggest_outfit(profile, _items(), "Work"))
    assert result.suggestion == HIGH_TRAFFIC_SUGGESTION
    assert result.recommended_item_ids == []


def test_single_try_on_renders_front_view(fake_service: FakeStylistService, clock: FakeClock) -> None:
    image = asyncio.run(_client(fake_service, clock).generate_try_on(PIXEL, _items()))

    assert image.startswith("data:image/png;base64,")
    assert [call["label"] for call in fake_service.view_calls()] == [Viewpoint.FRONT.prompt_label]


def test_turnaround_requires_items_and_photo(fake_service: FakeStylistService, clock: FakeClock) -> None:
    client = _client(fake_service, clock)
    with pytest.raises(ValueError):
        asyncio.run(client.generate_turnaround(PIXEL, []))
    with pytest.raises(ValueError):
        asyncio.run(client.generate_turnaround("", _items()))


def test_turnaround_through_client(fake_service: FakeStylistService, clock: FakeClock) -> None:
    result = asyncio.run(_client(fake_service, clock).generate_turnaround(PIXEL, _items()))

    assert isinstance(result, TryOnImageSet)
    assert clock.sleeps == [4.0, 4.0, 4.0]


def test_turnaround_without_credentials_fails_fast(clock: FakeClock) -> None:
    service = FakeStylistService(clock, configured=False)

    with pytest.raises(NotConfiguredError):
        asyncio.run(_client(service, clock).generate_turnaround(PIXEL, _items()))
    assert service.view_calls() == []
    assert clock.sleeps == []


def test_remote_photo_fetch_does_not_stall_other_tasks(
    fake_service: FakeStylistService, clock: FakeClock, monkeypatch
) -> None:
    def slow_get(url, timeout):
        time.sleep(0.3)
        return SimpleNamespace(content=b"photo", raise_for_status=lambda: None)

    monkeypatch.setattr(image_payload.requests, "get", slow_get)

    async def scenario() -> float:
        loop = asyncio.get_running_loop()
        classify = asyncio.ensure_future(
            _client(fake_service, clock).classify("https://example.com/top.jpg")
        )
        largest_gap = 0.0
        last = loop.time()
        while not classify.done():
            await asyncio.sleep(0.02)
            now = loop.time()
            largest_gap = max(largest_gap, now - last)
            last = now
        await classify
        return largest_gap

    assert asyncio.run(scenario()) < 0.2
    assert fake_service.calls[0]["image"] == b"photo"
