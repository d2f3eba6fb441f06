"""Configuration helpers for the wardrobe core."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_CLASSIFY_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
STORAGE_BACKENDS = ("memory", "json", "sqlite")


@dataclass
class WardrobeConfig:
    """Configuration values for the wardrobe core.

    Retry and cooldown values are in seconds. ``storage_quota_bytes`` emulates
    the browser storage limit the catalogue was designed around; ``None``
    disables the quota.
    """

    api_key: Optional[str] = None
    classify_model: str = DEFAULT_CLASSIFY_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    storage_backend: str = "json"
    storage_path: Optional[str] = None
    storage_quota_bytes: Optional[int] = 5 * 1024 * 1024
    retry_base_delay: float = 5.0
    retry_multiplier: float = 1.5
    retry_max_attempts: int = 5
    turnaround_cooldown: float = 4.0
    request_timeout: float = 30.0
    environment: str | None = None

    @property
    def is_ai_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @classmethod
    def from_env(cls) -> "WardrobeConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables so that the API key can
        be injected by the runtime environment.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("WARDROBE_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        api_key = get_value("gemini_api_key") or get_value("api_key")
        storage_backend = (get_value("storage_backend", "json") or "json").lower()
        if storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unsupported storage_backend {storage_backend!r}; expected one of {STORAGE_BACKENDS}"
            )
        raw_quota = get_value("storage_quota_bytes")
        quota: Optional[int] = cls.storage_quota_bytes
        if raw_quota is not None:
            quota = int(raw_quota) if raw_quota.strip() and raw_quota.strip() != "0" else None

        return cls(
            api_key=api_key,
            classify_model=str(get_value("classify_model", DEFAULT_CLASSIFY_MODEL)),
            image_model=str(get_value("image_model", DEFAULT_IMAGE_MODEL)),
            storage_backend=storage_backend,
            storage_path=get_value("storage_path"),
            storage_quota_bytes=quota,
            retry_base_delay=float(get_value("retry_base_delay", "5.0") or 5.0),
            retry_multiplier=float(get_value("retry_multiplier", "1.5") or 1.5),
            retry_max_attempts=int(get_value("retry_max_attempts", "5") or 5),
            turnaround_cooldown=float(get_value("turnaround_cooldown", "4.0") or 4.0),
            request_timeout=float(get_value("request_timeout", "30.0") or 30.0),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
