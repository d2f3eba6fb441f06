"""Prompt builders shared by the stylist service and client."""

from __future__ import annotations

import json
from typing import Iterable, List

from models.clothing_item import ClothingItem
from models.identity import Profile
from models.taxonomy import ClothingCategory, join_tags

CLASSIFY_PROMPT = f"""Analyze this clothing item with the expertise of a fashion designer.

Identify the following:
1. category: one of ({", ".join(category.value for category in ClothingCategory)})
2. color: be specific (e.g. 'Crimson Red' instead of 'Red', 'Sage Green' instead of 'Green').
3. material: estimate the fabric composition or texture (e.g. 'Ribbed Cotton', 'Distressed Denim').
4. style: 2-3 comma separated aesthetic keywords (e.g. 'Streetwear, Minimalist').
5. description: a concise editorial description suitable for a catalog.

Return strictly a JSON object with the keys category, color, material, style, description."""

TRY_ON_RULES: List[str] = [
    "Replace the user's original clothes with ONLY the items provided in the input images ({items}).",
    "Do NOT add any extra accessories, bags, hats, or jewelry that are not in the input.",
    "Do NOT change the user's body shape or face.",
    "The background should be neutral or identical to the original user photo.",
    "Perspective: this must be a {angle} view.",
]


def build_try_on_prompt(angle: str, item_descriptions: Iterable[str]) -> str:
    """Compose the virtual try-on instruction for one viewpoint."""

    items = ", ".join(item_descriptions)
    rules = "\n".join(
        f"{index}. {rule.format(items=items, angle=angle)}" for index, rule in enumerate(TRY_ON_RULES, start=1)
    )
    return (
        "Generate a realistic virtual try-on image.\n"
        "The first image provided is the user (reference model).\n"
        "The subsequent images are the ONLY clothing items to be worn.\n\n"
        f"Task: generate a high-quality image of the user wearing these specific items from a {angle} angle.\n\n"
        f"Strict rules:\n{rules}"
    )


def build_suggestion_prompt(profile: Profile, items: List[ClothingItem], occasion: str) -> str:
    inventory = [
        {
            "id": item.id,
            "category": item.category.value,
            "color": item.color,
            "style": join_tags(item.style_tags),
            "material": join_tags(item.material_tags),
            "description": item.description,
        }
        for item in items
    ]
    preference = f"\n- Style Preference: {profile.style_preference}" if profile.style_preference else ""
    return (
        "Act as a professional fashion stylist.\n\n"
        "User Profile:\n"
        f"- Height: {profile.height_cm:g}cm\n"
        f"- Weight: {profile.weight_kg:g}kg\n"
        f"- Skin Tone: {profile.skin_tone}{preference}\n\n"
        f"Occasion/Context: {occasion}\n\n"
        f"Wardrobe Inventory:\n{json.dumps(inventory)}\n\n"
        "Task: select the best outfit combination from the inventory for this user and occasion. "
        "Explain why these items work together and how they complement the user's features.\n\n"
        "Return a JSON object with 'suggestion' (a friendly paragraph) and "
        "'recommendedItemIds' (an array of the selected item ids)."
    )


__all__ = ["CLASSIFY_PROMPT", "build_suggestion_prompt", "build_try_on_prompt"]
