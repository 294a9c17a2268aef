"""Value objects for inventory, notifications, recipes and scans."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

EXPIRY_WARNING = "expiry_warning"

PRIORITIES = ("high", "medium", "low")
DIFFICULTIES = ("Easy", "Medium", "Hard")

CATEGORIES = (
    "Fruits",
    "Vegetables",
    "Dairy",
    "Meat",
    "Bakery",
    "Pantry",
    "Frozen",
    "Other",
)

# Typical shelf life per category, used when no expiry estimate is available
SHELF_LIFE_DAYS: dict[str, int] = {
    "Fruits": 7,
    "Vegetables": 7,
    "Dairy": 10,
    "Meat": 3,
    "Bakery": 5,
    "Pantry": 180,
    "Frozen": 90,
    "Other": 14,
}


@dataclass
class InventoryItem:
    """A grocery item owned by a user."""

    user_id: int
    name: str
    category: str
    expiry_date: date
    quantity: float = 1.0
    unit: str = "pieces"
    location: str = "Refrigerator"
    added_date: date | None = None
    consumed: bool = False
    ai_confidence: float | None = None  # 0.0〜1.0, None for manual entries
    metadata: dict = field(default_factory=dict)  # brand, purchase_price, store
    barcode: str | None = None
    image_url: str | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Notification:
    user_id: int
    item_id: int
    title: str
    message: str
    priority: str  # "high" | "medium" | "low"
    kind: str = EXPIRY_WARNING
    read: bool = False
    scheduled_for: datetime | None = None
    sent_at: datetime | None = None
    id: int | None = None
    created_at: datetime | None = None


@dataclass
class NutritionInfo:
    """Nutrition facts per 100g serving."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0


@dataclass
class Recipe:
    name: str
    ingredients: list[str]
    instructions: list[str]
    prep_time: int = 0
    cook_time: int = 0
    servings: int = 1
    difficulty: str = "Easy"
    description: str = ""
    cuisine: str | None = None
    tags: list[str] = field(default_factory=list)
    nutrition: dict | None = None  # calories, protein, carbs, fat
    image_url: str | None = None
    source: str | None = None
    is_public: bool = True
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class RecipeSuggestion:
    """One matching computation of a recipe against a user's ingredients."""

    user_id: int
    recipe_id: int
    matching_ingredients: list[str]
    match_score: int
    available_count: int
    total_count: int
    viewed: bool = False
    accepted: bool = False
    id: int | None = None
    suggested_at: datetime | None = None
    recipe: Recipe | None = None  # populated when listing


@dataclass
class SavedRecipe:
    """A recipe on a user's personal list, with their rating and notes."""

    user_id: int
    recipe_id: int
    rating: int | None = None  # 1〜5
    notes: str | None = None
    favorite: bool = False
    times_cooked: int = 0
    last_made: date | None = None
    id: int | None = None
    saved_at: datetime | None = None
    recipe: Recipe | None = None


@dataclass
class RatedRecipe:
    recipe: Recipe
    average_rating: float | None
    rating_count: int


@dataclass
class RecognizedItem:
    name: str
    confidence: float
    category: str = "Other"
    estimated_expiry: date | None = None
    quantity: float = 1.0
    unit: str = "pieces"


@dataclass
class GeneratedRecipe:
    """A recipe proposed by the generation provider."""

    recipe: Recipe
    match_score: int = 0  # as reported by the model
    available_ingredients: list[str] = field(default_factory=list)
    missing_ingredients: list[str] = field(default_factory=list)


@dataclass
class ScanRecord:
    user_id: int
    recognized_items: list[RecognizedItem] = field(default_factory=list)
    processing_ms: int = 0
    success: bool = True
    error_message: str | None = None
    image_url: str | None = None
    id: int | None = None
    scanned_at: datetime | None = None


@dataclass
class InventoryStats:
    total_items: int = 0
    expiring_items: int = 0
    recent_scans: int = 0
    waste_reduced: int = 0
    money_saved: int = 0

    def to_dict(self) -> dict:
        """Return the dashboard shape with camelCase keys."""
        return {
            "totalItems": self.total_items,
            "expiringItems": self.expiring_items,
            "recentScans": self.recent_scans,
            "wasteReduced": self.waste_reduced,
            "moneySaved": self.money_saved,
        }
