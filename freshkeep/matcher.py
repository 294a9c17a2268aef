"""Ingredient match scoring and recipe suggestions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from .models import RatedRecipe, Recipe, RecipeSuggestion, SavedRecipe

if TYPE_CHECKING:
    from .config import FreshkeepConfig
    from .db import InventoryDB, RecipeDB
    from .generation import GroceryAI

logger = logging.getLogger(__name__)


def _normalize(available: list[str]) -> list[str]:
    return [a.strip().lower() for a in available if a and a.strip()]


def match_ingredient(ingredient: str, available: list[str]) -> bool:
    """Check if a recipe ingredient matches any available ingredient.

    Free-text substring match in either direction, ignoring case, so
    "2 bananas" matches "banana" and "milk" matches "1 cup almond milk".
    """
    name = ingredient.strip().lower()
    if not name:
        return False
    return any(a in name or name in a for a in _normalize(available))


def score(recipe_ingredients: list[str], available: list[str]) -> tuple[list[str], int]:
    """Score a recipe against available ingredients.

    Returns:
        (matched recipe ingredients in recipe order, percentage 0-100 rounded half up)

    Raises:
        ValueError: If the recipe has no ingredients.
    """
    if not recipe_ingredients:
        raise ValueError("cannot score a recipe with no ingredients")
    normalized = _normalize(available)
    matched = [i for i in recipe_ingredients if match_ingredient(i, normalized)]
    total = len(recipe_ingredients)
    return matched, (200 * len(matched) + total) // (2 * total)


@dataclass
class ScoredRecipe:
    recipe: Recipe
    matched: list[str]
    score: int


def rank_recipes(
    recipes: list[Recipe], available: list[str], min_score: int = 30
) -> list[ScoredRecipe]:
    """Score, filter and rank candidate recipes.

    Recipes without ingredients are skipped. A recipe is kept when at least
    one ingredient matched and its score reaches ``min_score``. Ties keep
    catalog order.
    """
    candidates: list[ScoredRecipe] = []
    for recipe in recipes:
        if not recipe.ingredients:
            logger.debug("Skipping recipe %s with no ingredients", recipe.id)
            continue
        matched, pct = score(recipe.ingredients, available)
        if matched and pct >= min_score:
            candidates.append(ScoredRecipe(recipe=recipe, matched=matched, score=pct))
    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates


class RecipeRecommender:
    """Turn ingredient matches against the recipe catalog into stored suggestions.

    Generating suggestions replaces the user's earlier *unviewed* suggestion
    for the same recipe; viewed and accepted suggestions are kept as history.
    """

    def __init__(
        self,
        recipe_db: RecipeDB,
        inventory_db: InventoryDB | None = None,
        ai: GroceryAI | None = None,
        min_match_score: int = 30,
        suggestion_limit: int = 10,
        catalog_limit: int = 50,
    ) -> None:
        self._recipes = recipe_db
        self._inventory = inventory_db
        self._ai = ai
        self._min_match_score = min_match_score
        self._suggestion_limit = suggestion_limit
        self._catalog_limit = catalog_limit

    @classmethod
    def from_config(
        cls,
        config: FreshkeepConfig,
        recipe_db: RecipeDB,
        inventory_db: InventoryDB | None = None,
        ai: GroceryAI | None = None,
    ) -> RecipeRecommender:
        rc = config.recipes
        return cls(
            recipe_db,
            inventory_db=inventory_db,
            ai=ai,
            min_match_score=rc.min_match_score,
            suggestion_limit=rc.suggestion_limit,
            catalog_limit=rc.catalog_limit,
        )

    def generate_suggestions(
        self, user_id: int, available: list[str]
    ) -> list[RecipeSuggestion]:
        """Score the public catalog against ``available`` and store accepted matches.

        Each stored suggestion replaces the user's unviewed one for the same
        recipe, so IDs returned by an earlier call may no longer exist.

        Returns:
            The suggestions stored by this call, best score first.
        """
        try:
            catalog = self._recipes.get_recipes(public_only=True, limit=self._catalog_limit)
        except Exception:
            logger.exception("Failed to load recipe catalog")
            return []

        ranked = rank_recipes(catalog, available, self._min_match_score)
        now = datetime.now()
        created: list[RecipeSuggestion] = []
        for candidate in ranked:
            suggestion = RecipeSuggestion(
                user_id=user_id,
                recipe_id=candidate.recipe.id,
                matching_ingredients=candidate.matched,
                match_score=candidate.score,
                available_count=len(candidate.matched),
                total_count=len(candidate.recipe.ingredients),
                suggested_at=now,
                recipe=candidate.recipe,
            )
            try:
                suggestion.id = self._recipes.replace_suggestion(suggestion)
            except Exception:
                logger.exception(
                    "Failed to store suggestion for recipe %s", candidate.recipe.id
                )
                continue
            created.append(suggestion)

        logger.info(
            "Created %d recipe suggestions for user %s from %d recipes",
            len(created),
            user_id,
            len(catalog),
        )
        return created

    def suggest_from_inventory(self, user_id: int) -> list[RecipeSuggestion]:
        """Generate suggestions using the names of the user's current inventory."""
        if self._inventory is None:
            logger.error("Inventory suggestions requested but no inventory is configured")
            return []
        try:
            items = self._inventory.get_active_items(user_id, limit=200)
        except Exception:
            logger.exception("Failed to load inventory for user %s", user_id)
            return []
        return self.generate_suggestions(user_id, [i.name for i in items])

    def list_suggestions(self, user_id: int, limit: int | None = None) -> list[RecipeSuggestion]:
        """Return unviewed suggestions, best score first, capped at the suggestion limit."""
        limit = min(limit or self._suggestion_limit, self._suggestion_limit)
        try:
            return self._recipes.get_suggestions(user_id, unviewed_only=True, limit=limit)
        except Exception:
            logger.exception("Failed to load suggestions for user %s", user_id)
            return []

    def mark_viewed(self, suggestion_id: int) -> bool:
        try:
            return self._recipes.mark_suggestion_viewed(suggestion_id)
        except Exception:
            logger.exception("Failed to mark suggestion %s as viewed", suggestion_id)
            return False

    def accept(self, suggestion_id: int) -> bool:
        """Accept a suggestion and add its recipe to the user's saved list."""
        try:
            if not self._recipes.accept_suggestion(suggestion_id):
                return False
            suggestion = self._recipes.get_suggestion(suggestion_id)
            self._recipes.save_recipe(
                suggestion.user_id, suggestion.recipe_id, favorite=None
            )
        except Exception:
            logger.exception("Failed to accept suggestion %s", suggestion_id)
            return False
        return True

    def save_recipe(
        self, user_id: int, recipe_id: int, favorite: bool = True, notes: str | None = None
    ) -> SavedRecipe | None:
        try:
            return self._recipes.save_recipe(user_id, recipe_id, favorite=favorite, notes=notes)
        except Exception:
            logger.exception("Failed to save recipe %s for user %s", recipe_id, user_id)
            return None

    def rate_recipe(
        self, user_id: int, recipe_id: int, rating: int, notes: str | None = None
    ) -> SavedRecipe | None:
        try:
            return self._recipes.rate_recipe(user_id, recipe_id, rating, notes=notes)
        except Exception:
            logger.exception("Failed to rate recipe %s for user %s", recipe_id, user_id)
            return None

    def saved_recipes(self, user_id: int) -> list[SavedRecipe]:
        try:
            return self._recipes.get_user_recipes(user_id)
        except Exception:
            logger.exception("Failed to load saved recipes for user %s", user_id)
            return []

    def popular_recipes(self, limit: int = 10) -> list[RatedRecipe]:
        try:
            return self._recipes.get_popular_recipes(limit=limit)
        except Exception:
            logger.exception("Failed to load popular recipes")
            return []

    def search_recipes(self, query: str, available: list[str] | None = None) -> list[Recipe]:
        """Search public recipes by text, optionally keeping only ones that use an available ingredient."""
        try:
            results = self._recipes.search_recipes(query)
        except Exception:
            logger.exception("Failed to search recipes for %r", query)
            return []

        wanted = _normalize(available or [])
        if not wanted:
            return results
        return [
            r
            for r in results
            if any(a in ing.lower() for ing in r.ingredients for a in wanted)
        ]

    async def generate_ai_recipes(
        self, user_id: int, available: list[str]
    ) -> list[RecipeSuggestion]:
        """Ask the generation provider for recipes, add them to the catalog, then suggest."""
        if self._ai is None:
            logger.warning("AI recipe generation requested but no generator is configured")
            return []

        generated = await self._ai.generate_recipes(available)
        added = 0
        for g in generated:
            try:
                g.recipe.id = self._recipes.add_recipe(g.recipe)
                added += 1
            except Exception:
                logger.exception("Failed to store generated recipe %r", g.recipe.name)
        logger.info("Added %d generated recipes to the catalog", added)
        return self.generate_suggestions(user_id, available)
