"""Grocery inventory tracking with expiry alerts and recipe suggestions."""

from .config import (
    DatabaseConfig,
    FreshkeepConfig,
    GenerationConfig,
    NotificationConfig,
    RecipeConfig,
    ScannerConfig,
    StatsConfig,
    SweeperConfig,
    load_config,
)
from .generation import GenerationClient, GroceryAI, TextProvider, create_provider
from .inventory import InventoryService
from .matcher import RecipeRecommender, ScoredRecipe, match_ingredient, rank_recipes, score
from .models import (
    GeneratedRecipe,
    InventoryItem,
    InventoryStats,
    Notification,
    NutritionInfo,
    Recipe,
    RecipeSuggestion,
    RatedRecipe,
    RecognizedItem,
    SavedRecipe,
    ScanRecord,
)
from .notifications import ExpiryNotifier, days_until_expiry, expiry_template
from .scanner import Scanner
from .seed import ensure_seeded
from .stats import compute_stats

__all__ = [
    "InventoryItem",
    "Notification",
    "Recipe",
    "RecipeSuggestion",
    "SavedRecipe",
    "RatedRecipe",
    "RecognizedItem",
    "GeneratedRecipe",
    "NutritionInfo",
    "ScanRecord",
    "InventoryStats",
    "TextProvider",
    "create_provider",
    "GenerationClient",
    "GroceryAI",
    "ExpiryNotifier",
    "days_until_expiry",
    "expiry_template",
    "RecipeRecommender",
    "ScoredRecipe",
    "match_ingredient",
    "rank_recipes",
    "score",
    "compute_stats",
    "InventoryService",
    "Scanner",
    "ensure_seeded",
    "FreshkeepConfig",
    "GenerationConfig",
    "NotificationConfig",
    "RecipeConfig",
    "ScannerConfig",
    "StatsConfig",
    "DatabaseConfig",
    "SweeperConfig",
    "load_config",
]
