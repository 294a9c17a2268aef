"""Recipe catalog and recipe suggestion storage."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ..models import RatedRecipe, Recipe, RecipeSuggestion, SavedRecipe
from .schema import (
    dump_json,
    ensure_schema,
    load_json,
    now_str,
    parse_date,
    parse_datetime,
)


def _row_to_recipe(row: sqlite3.Row, prefix: str = "") -> Recipe:
    return Recipe(
        id=row[f"{prefix}id"],
        name=row["name"],
        description=row["description"] or "",
        ingredients=load_json(row["ingredients"], []),
        instructions=load_json(row["instructions"], []),
        prep_time=row["prep_time"],
        cook_time=row["cook_time"],
        servings=row["servings"],
        difficulty=row["difficulty"],
        cuisine=row["cuisine"],
        tags=load_json(row["tags"], []),
        nutrition=load_json(row["nutrition_info"]),
        image_url=row["image_url"],
        source=row["source"],
        is_public=bool(row["is_public"]),
        created_at=parse_datetime(row["created_at"]),
        updated_at=parse_datetime(row["updated_at"]),
    )


def _row_to_suggestion(row: sqlite3.Row) -> RecipeSuggestion:
    return RecipeSuggestion(
        id=row["id"],
        user_id=row["user_id"],
        recipe_id=row["recipe_id"],
        matching_ingredients=load_json(row["matching_ingredients"], []),
        match_score=row["match_score"],
        available_count=row["available_ingredients"],
        total_count=row["total_ingredients"],
        suggested_at=parse_datetime(row["suggested_at"]),
        viewed=bool(row["is_viewed"]),
        accepted=bool(row["is_accepted"]),
    )


def _row_to_saved(row: sqlite3.Row) -> SavedRecipe:
    return SavedRecipe(
        id=row["ur_id"],
        user_id=row["user_id"],
        recipe_id=row["recipe_id"],
        rating=row["rating"],
        notes=row["notes"],
        favorite=bool(row["is_favorite"]),
        times_cooked=row["times_cooked"],
        last_made=parse_date(row["last_made"]),
        saved_at=parse_datetime(row["saved_at"]),
    )


_SAVED_SELECT = """SELECT ur.id AS ur_id, ur.user_id, ur.recipe_id, ur.rating, ur.notes,
                          ur.is_favorite, ur.last_made, ur.times_cooked, ur.saved_at,
                          r.id AS r_id, r.name, r.description, r.ingredients,
                          r.instructions, r.prep_time, r.cook_time, r.servings,
                          r.difficulty, r.cuisine, r.tags, r.nutrition_info,
                          r.image_url, r.source, r.is_public, r.created_at,
                          r.updated_at
                   FROM user_recipes ur
                   JOIN recipes r ON r.id = ur.recipe_id"""


class RecipeDB:
    """Manages the recipes, recipe_suggestions and user_recipes tables."""

    def __init__(self, db_path: str | Path = "~/.config/freshkeep/freshkeep.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def add_recipe(self, recipe: Recipe) -> int:
        """Insert a recipe into the catalog and return its row ID."""
        conn = self._get_conn()
        ts = now_str()
        cur = conn.execute(
            """INSERT INTO recipes
               (name, description, ingredients, instructions, prep_time,
                cook_time, servings, difficulty, cuisine, tags, nutrition_info,
                image_url, source, is_public, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                recipe.name,
                recipe.description,
                dump_json(recipe.ingredients),
                dump_json(recipe.instructions),
                recipe.prep_time,
                recipe.cook_time,
                recipe.servings,
                recipe.difficulty,
                recipe.cuisine,
                dump_json(recipe.tags),
                dump_json(recipe.nutrition),
                recipe.image_url,
                recipe.source,
                int(recipe.is_public),
                ts,
                ts,
            ),
        )
        conn.commit()
        return cur.lastrowid

    def get_recipe(self, recipe_id: int) -> Recipe | None:
        conn = self._get_conn()
        row = conn.execute("SELECT * FROM recipes WHERE id = ?", (recipe_id,)).fetchone()
        return _row_to_recipe(row) if row else None

    def get_recipes(self, public_only: bool = True, limit: int = 20) -> list[Recipe]:
        """Return catalog recipes, newest first."""
        conn = self._get_conn()
        sql = "SELECT * FROM recipes"
        if public_only:
            sql += " WHERE is_public = 1"
        sql += " ORDER BY created_at DESC, id DESC LIMIT ?"
        rows = conn.execute(sql, (limit,)).fetchall()
        return [_row_to_recipe(r) for r in rows]

    def search_recipes(self, query: str, limit: int = 20) -> list[Recipe]:
        """Case-insensitive substring search over public recipe name, description and cuisine."""
        conn = self._get_conn()
        q = query.lower()
        rows = conn.execute(
            """SELECT * FROM recipes
               WHERE is_public = 1
                 AND (instr(lower(name), ?) > 0
                      OR instr(lower(coalesce(description, '')), ?) > 0
                      OR instr(lower(coalesce(cuisine, '')), ?) > 0)
               ORDER BY created_at DESC, id DESC
               LIMIT ?""",
            (q, q, q, limit),
        ).fetchall()
        return [_row_to_recipe(r) for r in rows]

    def count_recipes(self) -> int:
        conn = self._get_conn()
        return conn.execute("SELECT COUNT(*) AS n FROM recipes").fetchone()["n"]

    def add_suggestion(self, suggestion: RecipeSuggestion) -> int:
        conn = self._get_conn()
        row_id = self._insert_suggestion(conn, suggestion)
        conn.commit()
        return row_id

    def replace_suggestion(self, suggestion: RecipeSuggestion) -> int:
        """Insert a suggestion in place of the user's unviewed ones for the same recipe.

        The delete and the insert share one transaction, so a failed insert
        leaves the earlier suggestion in place.

        Returns:
            The new row ID.
        """
        conn = self._get_conn()
        with conn:
            conn.execute(
                """DELETE FROM recipe_suggestions
                   WHERE user_id = ? AND recipe_id = ? AND is_viewed = 0""",
                (suggestion.user_id, suggestion.recipe_id),
            )
            return self._insert_suggestion(conn, suggestion)

    @staticmethod
    def _insert_suggestion(conn: sqlite3.Connection, suggestion: RecipeSuggestion) -> int:
        cur = conn.execute(
            """INSERT INTO recipe_suggestions
               (user_id, recipe_id, matching_ingredients, match_score,
                available_ingredients, total_ingredients, suggested_at,
                is_viewed, is_accepted)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                suggestion.user_id,
                suggestion.recipe_id,
                dump_json(suggestion.matching_ingredients),
                suggestion.match_score,
                suggestion.available_count,
                suggestion.total_count,
                now_str(suggestion.suggested_at),
                int(suggestion.viewed),
                int(suggestion.accepted),
            ),
        )
        return cur.lastrowid

    def delete_unviewed_suggestions(self, user_id: int, recipe_id: int) -> int:
        """Remove a user's unviewed suggestions for one recipe.

        Returns:
            Number of rows deleted.
        """
        conn = self._get_conn()
        cur = conn.execute(
            """DELETE FROM recipe_suggestions
               WHERE user_id = ? AND recipe_id = ? AND is_viewed = 0""",
            (user_id, recipe_id),
        )
        conn.commit()
        return cur.rowcount

    def get_suggestions(
        self, user_id: int, unviewed_only: bool = True, limit: int = 10
    ) -> list[RecipeSuggestion]:
        """Return suggestions with their recipes, best score first, then newest."""
        conn = self._get_conn()
        sql = """SELECT s.*, r.id AS r_id, r.name, r.description, r.ingredients,
                        r.instructions, r.prep_time, r.cook_time, r.servings,
                        r.difficulty, r.cuisine, r.tags, r.nutrition_info,
                        r.image_url, r.source, r.is_public, r.created_at,
                        r.updated_at
                 FROM recipe_suggestions s
                 JOIN recipes r ON r.id = s.recipe_id
                 WHERE s.user_id = ?"""
        if unviewed_only:
            sql += " AND s.is_viewed = 0"
        sql += " ORDER BY s.match_score DESC, s.suggested_at DESC, s.id DESC LIMIT ?"
        rows = conn.execute(sql, (user_id, limit)).fetchall()

        result = []
        for row in rows:
            suggestion = _row_to_suggestion(row)
            suggestion.recipe = _row_to_recipe(row, prefix="r_")
            result.append(suggestion)
        return result

    def mark_suggestion_viewed(self, suggestion_id: int) -> bool:
        conn = self._get_conn()
        cur = conn.execute(
            "UPDATE recipe_suggestions SET is_viewed = 1 WHERE id = ?",
            (suggestion_id,),
        )
        conn.commit()
        return cur.rowcount > 0

    def accept_suggestion(self, suggestion_id: int) -> bool:
        """Mark a suggestion as accepted (and therefore viewed)."""
        conn = self._get_conn()
        cur = conn.execute(
            "UPDATE recipe_suggestions SET is_accepted = 1, is_viewed = 1 WHERE id = ?",
            (suggestion_id,),
        )
        conn.commit()
        return cur.rowcount > 0

    def get_suggestion(self, suggestion_id: int) -> RecipeSuggestion | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM recipe_suggestions WHERE id = ?", (suggestion_id,)
        ).fetchone()
        return _row_to_suggestion(row) if row else None

    def save_recipe(
        self,
        user_id: int,
        recipe_id: int,
        favorite: bool | None = True,
        notes: str | None = None,
    ) -> SavedRecipe:
        """Add a recipe to a user's list, or refresh it if already there.

        Args:
            favorite: New favorite flag, or None to keep the stored one.
            notes: New notes, or None to keep the stored ones.
        """
        conn = self._get_conn()
        flag = None if favorite is None else int(favorite)
        conn.execute(
            """INSERT INTO user_recipes (user_id, recipe_id, notes, is_favorite, saved_at)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT (user_id, recipe_id) DO UPDATE SET
                   notes = coalesce(excluded.notes, notes),
                   is_favorite = coalesce(?, is_favorite),
                   saved_at = excluded.saved_at""",
            (user_id, recipe_id, notes, flag or 0, now_str(), flag),
        )
        conn.commit()
        return self.get_saved_recipe(user_id, recipe_id)

    def rate_recipe(
        self, user_id: int, recipe_id: int, rating: int, notes: str | None = None
    ) -> SavedRecipe:
        """Set a user's 1-5 rating, saving the recipe to their list if needed.

        Raises:
            ValueError: If the rating is outside 1-5.
        """
        if not 1 <= rating <= 5:
            raise ValueError(f"rating must be between 1 and 5, got {rating}")
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO user_recipes (user_id, recipe_id, rating, notes, saved_at)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT (user_id, recipe_id) DO UPDATE SET
                   rating = excluded.rating,
                   notes = coalesce(excluded.notes, notes)""",
            (user_id, recipe_id, rating, notes, now_str()),
        )
        conn.commit()
        return self.get_saved_recipe(user_id, recipe_id)

    def get_saved_recipe(self, user_id: int, recipe_id: int) -> SavedRecipe | None:
        conn = self._get_conn()
        row = conn.execute(
            _SAVED_SELECT + " WHERE ur.user_id = ? AND ur.recipe_id = ?",
            (user_id, recipe_id),
        ).fetchone()
        if row is None:
            return None
        saved = _row_to_saved(row)
        saved.recipe = _row_to_recipe(row, prefix="r_")
        return saved

    def get_user_recipes(self, user_id: int) -> list[SavedRecipe]:
        """Return a user's saved recipes, most recently saved first."""
        conn = self._get_conn()
        rows = conn.execute(
            _SAVED_SELECT + " WHERE ur.user_id = ? ORDER BY ur.saved_at DESC, ur.id DESC",
            (user_id,),
        ).fetchall()
        result = []
        for row in rows:
            saved = _row_to_saved(row)
            saved.recipe = _row_to_recipe(row, prefix="r_")
            result.append(saved)
        return result

    def get_popular_recipes(self, limit: int = 10) -> list[RatedRecipe]:
        """Return public recipes by average rating across users; unrated recipes last."""
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT r.*, AVG(ur.rating) AS avg_rating, COUNT(ur.rating) AS rating_count
               FROM recipes r
               LEFT JOIN user_recipes ur ON ur.recipe_id = r.id
               WHERE r.is_public = 1
               GROUP BY r.id
               ORDER BY avg_rating IS NULL, avg_rating DESC, r.created_at DESC, r.id DESC
               LIMIT ?""",
            (limit,),
        ).fetchall()
        return [
            RatedRecipe(
                recipe=_row_to_recipe(r),
                average_rating=r["avg_rating"],
                rating_count=r["rating_count"],
            )
            for r in rows
        ]
