"""Sample data for first-run demos."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING

from .models import InventoryItem, Recipe

if TYPE_CHECKING:
    from .db import InventoryDB, RecipeDB

logger = logging.getLogger(__name__)

# (name, category, days until expiry, quantity, unit, location, confidence)
_SAMPLE_ITEMS = [
    ("Organic Bananas", "Fruits", 2, 6, "pieces", "Counter", 0.95),
    ("Fresh Spinach", "Vegetables", 1, 1, "bunch", "Refrigerator", 0.92),
    ("Greek Yogurt", "Dairy", 7, 2, "containers", "Refrigerator", 0.98),
    ("Whole Grain Bread", "Bakery", 4, 1, "loaf", "Pantry", 0.89),
]

_SAMPLE_RECIPES = [
    Recipe(
        name="Banana Spinach Smoothie",
        description="A healthy and delicious smoothie perfect for breakfast",
        ingredients=[
            "2 bananas",
            "1 cup fresh spinach",
            "1 cup Greek yogurt",
            "2 tbsp honey",
            "1 cup almond milk",
        ],
        instructions=[
            "Add spinach and almond milk to blender",
            "Add bananas and Greek yogurt",
            "Blend until smooth",
            "Add honey to taste",
            "Serve immediately",
        ],
        prep_time=5,
        cook_time=0,
        servings=2,
        difficulty="Easy",
        cuisine="American",
        tags=["healthy", "breakfast", "smoothie", "vegetarian"],
        nutrition={"calories": 180, "protein": 12, "carbs": 35, "fat": 3},
        source="seed",
    ),
    Recipe(
        name="Spinach and Yogurt Parfait",
        description="A nutritious layered parfait with fresh ingredients",
        ingredients=[
            "1 cup Greek yogurt",
            "1 cup fresh spinach",
            "1/2 cup granola",
            "1/2 cup mixed berries",
            "2 tbsp honey",
        ],
        instructions=[
            "Layer yogurt in glass",
            "Add fresh spinach leaves",
            "Sprinkle granola",
            "Top with berries",
            "Drizzle with honey",
        ],
        prep_time=10,
        cook_time=0,
        servings=1,
        difficulty="Easy",
        cuisine="Mediterranean",
        tags=["healthy", "breakfast", "parfait", "vegetarian"],
        nutrition={"calories": 220, "protein": 15, "carbs": 30, "fat": 6},
        source="seed",
    ),
    Recipe(
        name="Quick Banana Bread",
        description="Easy banana bread using ripe bananas",
        ingredients=[
            "3 ripe bananas",
            "1/3 cup melted butter",
            "3/4 cup sugar",
            "1 egg",
            "1 tsp vanilla",
            "1 tsp baking soda",
            "1 1/2 cups flour",
        ],
        instructions=[
            "Preheat oven to 350°F",
            "Mash bananas in large bowl",
            "Mix in melted butter",
            "Add sugar, egg, and vanilla",
            "Mix in baking soda and flour",
            "Pour into greased loaf pan",
            "Bake for 60 minutes",
        ],
        prep_time=15,
        cook_time=60,
        servings=8,
        difficulty="Medium",
        cuisine="American",
        tags=["baking", "dessert", "banana", "bread"],
        nutrition={"calories": 280, "protein": 4, "carbs": 58, "fat": 6},
        source="seed",
    ),
]


def ensure_seeded(
    inventory_db: InventoryDB,
    recipe_db: RecipeDB,
    user_id: int = 1,
    today: date | None = None,
) -> tuple[int, int]:
    """Insert sample items and recipes into tables that are still empty.

    Safe to call on every start; a table that already has rows is left alone.

    Returns:
        (items inserted, recipes inserted)
    """
    today = today or date.today()
    items_added = 0
    recipes_added = 0

    if inventory_db.count_items() == 0:
        for name, category, days, quantity, unit, location, confidence in _SAMPLE_ITEMS:
            inventory_db.add_item(
                InventoryItem(
                    user_id=user_id,
                    name=name,
                    category=category,
                    expiry_date=today + timedelta(days=days),
                    quantity=quantity,
                    unit=unit,
                    location=location,
                    added_date=today,
                    ai_confidence=confidence,
                )
            )
            items_added += 1
        logger.info("Created %d sample grocery items", items_added)

    if recipe_db.count_recipes() == 0:
        for recipe in _SAMPLE_RECIPES:
            recipe_db.add_recipe(recipe)
            recipes_added += 1
        logger.info("Created %d sample recipes", recipes_added)

    return items_added, recipes_added
