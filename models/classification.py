"""Classification results returned by the stylist client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from models.clothing_item import ClothingItem, new_entity_id
from models.taxonomy import ClothingCategory


@dataclass
class ClassificationRecord:
    """Structured fields describing one garment image.

    ``ai_generated`` is False for records produced by the manual-entry
    fallback; ``fallback_reason`` then explains why the service was skipped.
    """

    category: ClothingCategory = ClothingCategory.TOP
    color: str = ""
    material_tags: List[str] = field(default_factory=list)
    style_tags: List[str] = field(default_factory=list)
    description: str = ""
    ai_generated: bool = True
    fallback_reason: Optional[str] = None

    @classmethod
    def manual_entry(cls, reason: str | None = None) -> "ClassificationRecord":
        return cls(ai_generated=False, fallback_reason=reason)

    def to_item(self, image: str, item_id: str | None = None) -> ClothingItem:
        """Build a catalogue item, filling blanks the way manual entry does."""

        return ClothingItem(
            id=item_id or new_entity_id(),
            image=image,
            category=self.category,
            color=self.color or "Unknown",
            style_tags=self.style_tags or ["Unknown"],
            material_tags=self.material_tags or ["Unknown"],
            description=self.description,
        )


__all__ = ["ClassificationRecord"]
