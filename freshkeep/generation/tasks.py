"""Structured generation tasks: item recognition, recipes, nutrition, notification copy.

Every task parses the completion as JSON. A generation failure, unparseable
text or a JSON value of the wrong shape all produce the same empty result
(``[]`` or ``None``) and are logged; nothing is raised to the caller.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import TYPE_CHECKING

from ..models import (
    CATEGORIES,
    DIFFICULTIES,
    GeneratedRecipe,
    NutritionInfo,
    Recipe,
    RecognizedItem,
)

if TYPE_CHECKING:
    from .client import GenerationClient

logger = logging.getLogger(__name__)

_MAX_NOTIFICATION_LENGTH = 160

_RECOGNIZE_PROMPT = """\
Analyze this grocery item image description and identify the food items present.
Image description: "{description}"

Return a JSON array of recognized items with this exact structure:
[
  {{
    "name": "item name",
    "confidence": 0.95,
    "category": "Fruits|Vegetables|Dairy|Meat|Bakery|Pantry|Frozen|Other",
    "estimatedExpiry": "YYYY-MM-DD",
    "quantity": 1,
    "unit": "pieces|kg|g|lbs|oz|liters|ml|containers|packages"
  }}
]

Guidelines:
- Confidence should be 0.0 to 1.0
- Today is {today}; estimate expiry dates based on typical shelf life
- Use common grocery categories
- Estimate reasonable quantities
- Return only valid JSON, no additional text
"""

_RECIPES_PROMPT = """\
Generate recipe suggestions based on these available ingredients: {ingredients}

Return a JSON array of 3-5 recipes with this exact structure:
[
  {{
    "name": "Recipe Name",
    "description": "Brief description",
    "ingredients": ["ingredient 1", "ingredient 2"],
    "instructions": ["step 1", "step 2"],
    "prepTime": 15,
    "cookTime": 30,
    "servings": 4,
    "difficulty": "Easy",
    "matchScore": 85,
    "availableIngredients": ["available ingredient 1"],
    "missingIngredients": ["missing ingredient 1"]
  }}
]

Guidelines:
- Prioritize recipes using the most available ingredients
- Include common pantry staples (salt, pepper, oil) as assumed available
- Match score should be 0-100 based on ingredient availability
- Difficulty: Easy, Medium, or Hard
- Return only valid JSON, no additional text
"""

_NUTRITION_PROMPT = """\
Provide nutritional information for: {item_name}

Return JSON with this structure:
{{
  "calories": 100,
  "protein": 5,
  "carbs": 20,
  "fat": 2,
  "fiber": 3,
  "sugar": 15,
  "sodium": 50
}}

Values should be per 100g serving. Return only valid JSON.
"""

_NOTIFICATION_PROMPT = """\
Generate a helpful notification message for a grocery item that's expiring.
Item: {item_name}
Days until expiry: {days}

Create a friendly, actionable message that:
- Mentions the item and timeframe
- Suggests what to do (use it, cook it, etc.)
- Keeps it under 100 characters

Return JSON with this structure: {{"message": "..."}}
Return only valid JSON, no additional text.
"""


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned


def _load(text: str, expected: type):
    """Decode JSON and check the top-level type.

    Raises:
        ValueError: If the text is not JSON or not of the expected type.
    """
    value = json.loads(_strip_fences(text))
    if not isinstance(value, expected):
        raise ValueError(
            f"expected JSON {expected.__name__}, got {type(value).__name__}"
        )
    return value


def _number(value, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [s.strip() for s in value if isinstance(s, str) and s.strip()]


def _normalize_category(value) -> str:
    if isinstance(value, str):
        for category in CATEGORIES:
            if category.lower() == value.strip().lower():
                return category
    return "Other"


def _parse_date(value) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _parse_recognized_items(text: str) -> list[RecognizedItem]:
    """Parse a JSON array of recognized items, merging duplicates by name."""
    items = _load(text, list)
    seen: dict[str, RecognizedItem] = {}
    for raw in items:
        if not isinstance(raw, dict):
            continue
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        name = name.strip()
        quantity = _number(raw.get("quantity"), 1.0)
        unit = raw.get("unit")
        item = RecognizedItem(
            name=name,
            confidence=min(max(_number(raw.get("confidence")), 0.0), 1.0),
            category=_normalize_category(raw.get("category")),
            estimated_expiry=_parse_date(raw.get("estimatedExpiry")),
            quantity=quantity if quantity > 0 else 1.0,
            unit=unit.strip() if isinstance(unit, str) and unit.strip() else "pieces",
        )
        key = name.lower()
        # Keep the higher-confidence reading of a duplicate
        if key not in seen or item.confidence > seen[key].confidence:
            seen[key] = item
    return list(seen.values())


def _parse_recipes(text: str) -> list[GeneratedRecipe]:
    """Parse a JSON array of recipes, dropping entries without a name or ingredients."""
    recipes = _load(text, list)
    result: list[GeneratedRecipe] = []
    for raw in recipes:
        if not isinstance(raw, dict):
            continue
        name = raw.get("name")
        ingredients = _string_list(raw.get("ingredients"))
        if not isinstance(name, str) or not name.strip() or not ingredients:
            continue

        difficulty = raw.get("difficulty")
        if isinstance(difficulty, str) and difficulty.strip().capitalize() in DIFFICULTIES:
            difficulty = difficulty.strip().capitalize()
        else:
            difficulty = "Medium"

        description = raw.get("description")
        recipe = Recipe(
            name=name.strip(),
            description=description if isinstance(description, str) else "",
            ingredients=ingredients,
            instructions=_string_list(raw.get("instructions")),
            prep_time=max(int(_number(raw.get("prepTime"))), 0),
            cook_time=max(int(_number(raw.get("cookTime"))), 0),
            servings=max(int(_number(raw.get("servings"), 1)), 1),
            difficulty=difficulty,
            source="ai_generated",
        )
        result.append(
            GeneratedRecipe(
                recipe=recipe,
                match_score=min(max(round(_number(raw.get("matchScore"))), 0), 100),
                available_ingredients=_string_list(raw.get("availableIngredients")),
                missing_ingredients=_string_list(raw.get("missingIngredients")),
            )
        )
    return result


def _parse_nutrition(text: str) -> NutritionInfo | None:
    data = _load(text, dict)
    fields = ("calories", "protein", "carbs", "fat", "fiber", "sugar", "sodium")
    if not any(f in data for f in fields):
        raise ValueError("no nutrition fields in response")
    return NutritionInfo(**{f: _number(data.get(f)) for f in fields})


def _parse_notification(text: str) -> str | None:
    data = _load(text, dict)
    message = data.get("message")
    if not isinstance(message, str) or not message.strip():
        raise ValueError("missing message text")
    return message.strip()[:_MAX_NOTIFICATION_LENGTH]


class GroceryAI:
    """Structured grocery tasks on top of a GenerationClient."""

    def __init__(self, client: GenerationClient) -> None:
        self._client = client

    async def recognize_items(
        self, image_description: str, today: date | None = None
    ) -> list[RecognizedItem]:
        prompt = _RECOGNIZE_PROMPT.format(
            description=image_description,
            today=(today or date.today()).isoformat(),
        )
        return await self._run(prompt, _parse_recognized_items, [], "item recognition")

    async def generate_recipes(self, available: list[str]) -> list[GeneratedRecipe]:
        prompt = _RECIPES_PROMPT.format(ingredients=", ".join(available))
        return await self._run(prompt, _parse_recipes, [], "recipe generation")

    async def analyze_nutrition(self, item_name: str) -> NutritionInfo | None:
        prompt = _NUTRITION_PROMPT.format(item_name=item_name)
        return await self._run(prompt, _parse_nutrition, None, "nutrition analysis")

    async def phrase_expiry_notification(
        self, item_name: str, days_until_expiry: int
    ) -> str | None:
        """Return a friendlier notification message, or None to keep the template."""
        prompt = _NOTIFICATION_PROMPT.format(item_name=item_name, days=days_until_expiry)
        return await self._run(prompt, _parse_notification, None, "notification phrasing")

    async def _run(self, prompt: str, parse, fallback, task: str):
        text = await self._client.generate(prompt)
        if text is None:
            logger.error("No data available for %s: generation failed", task)
            return fallback
        try:
            return parse(text)
        except (ValueError, TypeError, OverflowError, RecursionError) as e:
            logger.error("Failed to parse %s response: %s", task, e)
            return fallback
