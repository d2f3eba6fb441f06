from types import SimpleNamespace

import pytest
import requests

from tools import image_payload
from tools.image_payload import clean_base64, decode_image, guess_mime_type, to_data_url
from wardrobe_app.errors import TerminalServiceError


def test_data_url_prefix_is_stripped() -> None:
    assert clean_base64("data:image/webp;base64,QUJD") == "QUJD"
    assert guess_mime_type("data:image/webp;base64,QUJD") == "image/webp"
    assert guess_mime_type("QUJD") == "image/jpeg"


def test_decode_accepts_data_urls_bare_base64_and_bytes() -> None:
    assert decode_image("data:image/png;base64,QUJD") == b"ABC"
    assert decode_image("QUJD") == b"ABC"
    assert decode_image(b"raw") == b"raw"


def test_decode_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        decode_image("not base64 at all!")
    with pytest.raises(ValueError):
        decode_image("   ")


def test_to_data_url_defaults_to_png() -> None:
    assert to_data_url(b"ABC") == "data:image/png;base64,QUJD"


def test_remote_photo_is_fetched(monkeypatch) -> None:
    seen = {}

    def fake_get(url, timeout):
        seen.update(url=url, timeout=timeout)
        return SimpleNamespace(content=b"photo", raise_for_status=lambda: None)

    monkeypatch.setattr(image_payload.requests, "get", fake_get)

    assert decode_image("https://example.com/me.jpg", timeout=3.0) == b"photo"
    assert seen == {"url": "https://example.com/me.jpg", "timeout": 3.0}


def test_fetch_failure_is_terminal(monkeypatch) -> None:
    def failing_get(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(image_payload.requests, "get", failing_get)

    with pytest.raises(TerminalServiceError):
        decode_image("http://example.com/me.jpg")
