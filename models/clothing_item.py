"""Clothing item data model and helpers."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List

from models.taxonomy import ClothingCategory, split_tags, validate_category


def new_entity_id() -> str:
    """Return a fresh identifier for catalogue entities."""

    return uuid.uuid4().hex


@dataclass
class ClothingItem:
    """One digitised garment in an identity's catalogue."""

    id: str
    image: str
    category: ClothingCategory
    color: str = ""
    style_tags: List[str] = field(default_factory=list)
    material_tags: List[str] = field(default_factory=list)
    description: str = ""
    date_added: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ClothingItem requires an id")
        self.category = validate_category(self.category)
        self.date_added = float(self.date_added)
        self.color = (self.color or "").strip()
        self.style_tags = split_tags(self.style_tags)
        self.material_tags = split_tags(self.material_tags)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "image": self.image,
            "category": self.category.value,
            "color": self.color,
            "style_tags": list(self.style_tags),
            "material_tags": list(self.material_tags),
            "description": self.description,
            "date_added": self.date_added,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClothingItem":
        return cls(
            id=str(data["id"]),
            image=str(data.get("image", "")),
            category=data.get("category", ClothingCategory.TOP),
            color=str(data.get("color") or ""),
            style_tags=data.get("style_tags") or [],
            material_tags=data.get("material_tags") or [],
            description=str(data.get("description") or ""),
            date_added=float(data.get("date_added") or 0.0),
        )

    def summary(self) -> str:
        """Short label used in generation prompts."""

        return f"{self.color} {self.category.value} ({self.description})".strip()


__all__ = ["ClothingItem", "new_entity_id"]
