"""Canonical taxonomy definitions for clothing items.

This module centralises the clothing categories and the helpers that turn the
loose comma separated style/material strings produced by classification or
manual entry into clean tag lists.
"""

from enum import Enum
from typing import Iterable, List


class ClothingCategory(str, Enum):
    TOP = "Top"
    BOTTOM = "Bottom"
    DRESS = "Dress"
    SHOES = "Shoes"
    OUTERWEAR = "Outerwear"
    ACCESSORY = "Accessory"


CATEGORY_ALIASES = {
    "tops": ClothingCategory.TOP,
    "shirt": ClothingCategory.TOP,
    "bottoms": ClothingCategory.BOTTOM,
    "pants": ClothingCategory.BOTTOM,
    "trousers": ClothingCategory.BOTTOM,
    "dresses": ClothingCategory.DRESS,
    "shoe": ClothingCategory.SHOES,
    "footwear": ClothingCategory.SHOES,
    "jacket": ClothingCategory.OUTERWEAR,
    "coat": ClothingCategory.OUTERWEAR,
    "accessories": ClothingCategory.ACCESSORY,
}


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a lookup key."""

    return value.strip().lower()


def validate_category(value: str | ClothingCategory) -> ClothingCategory:
    """Validate and normalise a category value.

    Raises a :class:`ValueError` if the category is not part of the canonical
    taxonomy.
    """

    if isinstance(value, ClothingCategory):
        return value
    key = _normalize_key(str(value))
    for category in ClothingCategory:
        if category.value.lower() == key:
            return category
    if key in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[key]
    allowed = [category.value for category in ClothingCategory]
    raise ValueError(f"Unsupported category '{value}'. Allowed: {allowed}")


def coerce_category(
    value: str | ClothingCategory | None, default: ClothingCategory = ClothingCategory.TOP
) -> ClothingCategory:
    """Like :func:`validate_category` but falls back to ``default``."""

    if not value:
        return default
    try:
        return validate_category(value)
    except ValueError:
        return default


def split_tags(value: str | Iterable[str] | None) -> List[str]:
    """Split ``"Streetwear, Minimalist"`` style strings into deduplicated tags.

    Case is preserved from the first occurrence; duplicates are compared
    case-insensitively.
    """

    if value is None:
        return []
    raw_parts = value.split(",") if isinstance(value, str) else [str(part) for part in value]
    tags: List[str] = []
    seen = set()
    for part in raw_parts:
        tag = part.strip()
        if not tag or tag.lower() in seen:
            continue
        tags.append(tag)
        seen.add(tag.lower())
    return tags


def join_tags(tags: Iterable[str]) -> str:
    return ", ".join(tags)


__all__ = [
    "ClothingCategory",
    "coerce_category",
    "join_tags",
    "split_tags",
    "validate_category",
]
