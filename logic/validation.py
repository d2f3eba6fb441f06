"""Pydantic schemas for validating stylist service payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from models.classification import ClassificationRecord
from models.outfit import OutfitSuggestion
from models.taxonomy import coerce_category, split_tags
from wardrobe_app.errors import TerminalServiceError


class ClassificationPayload(BaseModel):
    """JSON object returned by the garment classification prompt."""

    category: str = "Top"
    color: str = ""
    style: Union[str, List[str]] = ""
    material: Union[str, List[str]] = ""
    description: str = ""

    @field_validator("category", "color", "style", "material", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_record(self) -> ClassificationRecord:
        return ClassificationRecord(
            category=coerce_category(self.category),
            color=self.color.strip(),
            style_tags=split_tags(self.style),
            material_tags=split_tags(self.material),
            description=self.description.strip(),
        )


class SuggestionPayload(BaseModel):
    """JSON object returned by the outfit suggestion prompt."""

    suggestion: str = Field(min_length=1)
    recommended_item_ids: List[str] = Field(default_factory=list, alias="recommendedItemIds")

    model_config = {"populate_by_name": True}

    def to_suggestion(self, known_ids: List[str]) -> OutfitSuggestion:
        known = set(known_ids)
        return OutfitSuggestion(
            suggestion=self.suggestion,
            recommended_item_ids=[item_id for item_id in self.recommended_item_ids if item_id in known],
        )


def parse_classification(payload: Dict[str, Any]) -> ClassificationRecord:
    """Validate a raw classification payload or raise a terminal error."""

    try:
        return ClassificationPayload.model_validate(payload).to_record()
    except ValidationError as exc:
        raise TerminalServiceError(f"Classification payload failed schema checks: {exc}") from exc


def parse_suggestion(payload: Dict[str, Any], known_ids: List[str]) -> OutfitSuggestion:
    try:
        return SuggestionPayload.model_validate(payload).to_suggestion(known_ids)
    except ValidationError as exc:
        raise TerminalServiceError(f"Suggestion payload failed schema checks: {exc}") from exc


__all__ = [
    "ClassificationPayload",
    "SuggestionPayload",
    "parse_classification",
    "parse_suggestion",
]
