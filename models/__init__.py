"""Model package exports."""

from models.classification import ClassificationRecord
from models.clothing_item import ClothingItem, new_entity_id
from models.feed import CalendarEvent, SharedLook
from models.identity import Identity, Profile
from models.outfit import TURNAROUND_ORDER, Outfit, OutfitSuggestion, TryOnImageSet, Viewpoint
from models.taxonomy import ClothingCategory

__all__ = [
    "CalendarEvent",
    "ClassificationRecord",
    "ClothingCategory",
    "ClothingItem",
    "Identity",
    "Outfit",
    "OutfitSuggestion",
    "Profile",
    "SharedLook",
    "TURNAROUND_ORDER",
    "TryOnImageSet",
    "Viewpoint",
    "new_entity_id",
]
