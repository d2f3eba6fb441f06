import json
import logging

import pytest

from wardrobe_app.config import WardrobeConfig
from wardrobe_app.logging_config import (
    JsonFormatter,
    correlation_context,
    log_event,
    redact_for_log,
)

_ENV_KEYS = (
    "APP_ENV",
    "APP_CONFIG_PATH",
    "GEMINI_API_KEY",
    "API_KEY",
    "STORAGE_BACKEND",
    "STORAGE_QUOTA_BYTES",
    "TURNAROUND_COOLDOWN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_environment() -> None:
    config = WardrobeConfig.from_env()

    assert config.is_ai_configured is False
    assert config.storage_backend == "json"
    assert config.retry_base_delay == 5.0
    assert config.retry_multiplier == 1.5
    assert config.retry_max_attempts == 5
    assert config.turnaround_cooldown == 4.0
    assert config.storage_quota_bytes == 5 * 1024 * 1024


def test_api_key_aliases(monkeypatch) -> None:
    monkeypatch.setenv("API_KEY", "fallback")
    assert WardrobeConfig.from_env().api_key == "fallback"

    monkeypatch.setenv("GEMINI_API_KEY", "primary")
    assert WardrobeConfig.from_env().api_key == "primary"


def test_yaml_file_is_merged_under_environment(monkeypatch, tmp_path) -> None:
    config_file = tmp_path / "dev.yaml"
    config_file.write_text(
        "# local settings\n"
        "storage_backend: sqlite\n"
        "storage_path: 'data/dev.db'\n"
        "turnaround_cooldown: 2.5\n"
        "storage_quota_bytes: 0\n"
    )
    monkeypatch.setenv("APP_CONFIG_PATH", str(config_file))
    monkeypatch.setenv("TURNAROUND_COOLDOWN", "6")

    config = WardrobeConfig.from_env()

    assert config.storage_backend == "sqlite"
    assert config.storage_path == "data/dev.db"
    assert config.turnaround_cooldown == 6.0
    assert config.storage_quota_bytes is None


def test_unknown_backend_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("STORAGE_BACKEND", "redis")

    with pytest.raises(ValueError):
        WardrobeConfig.from_env()


def test_redaction_masks_images_and_pii() -> None:
    scrubbed = redact_for_log(
        {
            "email": "alice@example.com",
            "note": "contact alice@example.com",
            "payload": "data:image/png;base64,AAAA",
            "raw": b"12345",
            "nested": [{"image": "data:image/jpeg;base64,BBBB"}],
            "count": 3,
        }
    )

    assert scrubbed["email"] == "[redacted]"
    assert scrubbed["note"] == "contact [redacted-email]"
    assert scrubbed["payload"] == "[redacted-image]"
    assert scrubbed["raw"] == "[5 bytes]"
    assert scrubbed["nested"] == [{"image": "[redacted]"}]
    assert scrubbed["count"] == 3


def test_long_strings_are_truncated() -> None:
    assert redact_for_log("x" * 1000).endswith("...[truncated]")


def test_log_event_carries_correlation_id(caplog) -> None:
    logger = logging.getLogger("tests.logging")
    with caplog.at_level(logging.INFO, logger="tests.logging"):
        with correlation_context("corr-123"):
            log_event(logger, logging.INFO, "item_added", scope="alice-1", image="data:image/png;base64,AA")

    record = caplog.records[-1]
    assert record.event == "item_added"
    assert record.correlation_id == "corr-123"
    assert record.image == "[redacted]"

    payload = json.loads(JsonFormatter().format(record))
    assert payload["event"] == "item_added"
    assert payload["correlation_id"] == "corr-123"
    assert payload["scope"] == "alice-1"


def test_formatter_inlines_only_extra_fields() -> None:
    logger = logging.getLogger("tests.formatter")
    record = logger.makeRecord(
        "tests.formatter",
        logging.WARNING,
        __file__,
        10,
        "upload rejected",
        None,
        None,
        extra={"body_photo": "data:image/png;base64,AA", "reason": "too large"},
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["event"] == "upload rejected"
    assert payload["reason"] == "too large"
    assert payload["body_photo"] == "[redacted]"
    assert "lineno" not in payload
    assert "pathname" not in payload
