"""Calendar and social feed models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List

from models.clothing_item import ClothingItem
from models.outfit import Outfit


@dataclass
class CalendarEvent:
    """A planned occasion pointing at a saved outfit."""

    date: str
    title: str
    outfit_id: str

    def __post_init__(self) -> None:
        # Accept date objects but persist ISO strings.
        if isinstance(self.date, date):
            self.date = self.date.isoformat()
        if not self.title.strip():
            raise ValueError("CalendarEvent requires a title")

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "title": self.title, "outfit_id": self.outfit_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalendarEvent":
        return cls(date=str(data["date"]), title=str(data["title"]), outfit_id=str(data["outfit_id"]))


@dataclass
class SharedLook:
    """A social feed post. Carries a snapshot so it survives catalogue deletes."""

    id: str
    author: str
    outfit: Outfit
    items: List[ClothingItem] = field(default_factory=list)
    likes: int = 0
    comments: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "author": self.author,
            "outfit": self.outfit.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "likes": self.likes,
            "comments": list(self.comments),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SharedLook":
        return cls(
            id=str(data["id"]),
            author=str(data.get("author") or ""),
            outfit=Outfit.from_dict(data["outfit"]),
            items=[ClothingItem.from_dict(item) for item in data.get("items") or []],
            likes=int(data.get("likes") or 0),
            comments=[str(comment) for comment in data.get("comments") or []],
        )


__all__ = ["CalendarEvent", "SharedLook"]
