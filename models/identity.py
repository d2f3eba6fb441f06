"""Identity and profile models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

GENDERS = ("Male", "Female", "Other")


@dataclass(frozen=True)
class Identity:
    """The signed-in account as reported by the external auth provider."""

    id: str
    display_name: str = ""
    email: Optional[str] = None
    photo_ref: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValueError("Identity requires a non-empty id")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        return cls(
            id=str(data["id"]),
            display_name=str(data.get("display_name") or ""),
            email=data.get("email"),
            photo_ref=data.get("photo_ref"),
        )


@dataclass
class Profile:
    """Physical and styling attributes of one identity."""

    name: str
    height_cm: float
    weight_kg: float
    skin_tone: str
    skin_tone_hex: str
    gender: str = "Other"
    style_preference: Optional[str] = None
    body_photo: Optional[str] = None

    def __post_init__(self) -> None:
        if self.gender not in GENDERS:
            raise ValueError(f"Unsupported gender '{self.gender}'. Allowed: {list(GENDERS)}")
        if self.height_cm <= 0 or self.weight_kg <= 0:
            raise ValueError("height_cm and weight_kg must be positive")
        self.height_cm = float(self.height_cm)
        self.weight_kg = float(self.weight_kg)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        return cls(
            name=str(data.get("name") or ""),
            height_cm=float(data["height_cm"]),
            weight_kg=float(data["weight_kg"]),
            skin_tone=str(data.get("skin_tone") or ""),
            skin_tone_hex=str(data.get("skin_tone_hex") or ""),
            gender=str(data.get("gender") or "Other"),
            style_preference=data.get("style_preference"),
            body_photo=data.get("body_photo"),
        )


__all__ = ["GENDERS", "Identity", "Profile"]
