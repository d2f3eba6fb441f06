"""Outfit and try-on schemas."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Viewpoint(str, Enum):
    """Camera angles of a turnaround, in generation order."""

    FRONT = "front"
    LEFT = "left"
    RIGHT = "right"
    BACK = "back"

    @property
    def prompt_label(self) -> str:
        return VIEWPOINT_PROMPT_LABELS[self]


VIEWPOINT_PROMPT_LABELS = {
    Viewpoint.FRONT: "Front View",
    Viewpoint.LEFT: "Left Side Profile",
    Viewpoint.RIGHT: "Right Side Profile",
    Viewpoint.BACK: "Back View (Rear)",
}
TURNAROUND_ORDER = (Viewpoint.FRONT, Viewpoint.LEFT, Viewpoint.RIGHT, Viewpoint.BACK)


@dataclass(frozen=True)
class TryOnImageSet:
    """Four rendered viewpoints of one outfit. Never partially populated."""

    front: str
    left: str
    right: str
    back: str

    def __post_init__(self) -> None:
        missing = [view.value for view in TURNAROUND_ORDER if not getattr(self, view.value)]
        if missing:
            raise ValueError(f"TryOnImageSet is missing viewpoints: {missing}")

    @classmethod
    def from_views(cls, views: Dict[Viewpoint, str]) -> "TryOnImageSet":
        return cls(**{view.value: views.get(view, "") for view in TURNAROUND_ORDER})

    def get(self, viewpoint: Viewpoint) -> str:
        return getattr(self, viewpoint.value)

    def to_dict(self) -> Dict[str, str]:
        return {view.value: self.get(view) for view in TURNAROUND_ORDER}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["TryOnImageSet"]:
        """Rebuild a set; incomplete persisted data yields ``None``."""

        if not data:
            return None
        try:
            return cls(**{view.value: str(data.get(view.value) or "") for view in TURNAROUND_ORDER})
        except ValueError:
            return None


@dataclass
class Outfit:
    """A saved combination of catalogue items, referenced by id."""

    id: str
    item_ids: List[str] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    ai_feedback: Optional[str] = None
    notes: Optional[str] = None
    try_on_images: Optional[TryOnImageSet] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Outfit requires an id")
        self.item_ids = [str(item_id) for item_id in self.item_ids]
        self.created_at = float(self.created_at)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "item_ids": list(self.item_ids),
            "created_at": self.created_at,
            "ai_feedback": self.ai_feedback,
            "notes": self.notes,
            "try_on_images": self.try_on_images.to_dict() if self.try_on_images else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Outfit":
        return cls(
            id=str(data["id"]),
            item_ids=list(data.get("item_ids") or []),
            created_at=float(data.get("created_at") or 0.0),
            ai_feedback=data.get("ai_feedback"),
            notes=data.get("notes"),
            try_on_images=TryOnImageSet.from_dict(data.get("try_on_images")),
        )


@dataclass
class OutfitSuggestion:
    suggestion: str
    recommended_item_ids: List[str] = field(default_factory=list)
    ai_generated: bool = True


__all__ = [
    "Outfit",
    "OutfitSuggestion",
    "TURNAROUND_ORDER",
    "TryOnImageSet",
    "Viewpoint",
]
