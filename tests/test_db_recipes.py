"""Tests for RecipeDB catalog and suggestion storage."""

import sqlite3
from datetime import datetime

import pytest

from freshkeep.db.recipes import RecipeDB
from freshkeep.models import Recipe, RecipeSuggestion


@pytest.fixture
def db(tmp_path):
    recipes = RecipeDB(db_path=tmp_path / "test.db")
    yield recipes
    recipes.close()


def _recipe(name, ingredients=None, **kwargs):
    return Recipe(
        name=name,
        ingredients=ingredients or ["1 egg"],
        instructions=["Cook"],
        **kwargs,
    )


def _suggestion(recipe_id, score, user_id=1, suggested_at=None):
    return RecipeSuggestion(
        user_id=user_id,
        recipe_id=recipe_id,
        matching_ingredients=["1 egg"],
        match_score=score,
        available_count=1,
        total_count=2,
        suggested_at=suggested_at or datetime(2026, 3, 10, 9, 0, 0),
    )


def test_add_and_get_recipe(db):
    recipe_id = db.add_recipe(
        _recipe(
            "Omelette",
            ["2 eggs", "1 cup spinach"],
            tags=["breakfast"],
            nutrition={"calories": 200},
            cuisine="French",
        )
    )
    recipe = db.get_recipe(recipe_id)

    assert recipe.id == recipe_id
    assert recipe.ingredients == ["2 eggs", "1 cup spinach"]
    assert recipe.instructions == ["Cook"]
    assert recipe.tags == ["breakfast"]
    assert recipe.nutrition == {"calories": 200}
    assert recipe.is_public is True


def test_get_recipes_public_only(db):
    db.add_recipe(_recipe("Public"))
    db.add_recipe(_recipe("Private", is_public=False))

    assert [r.name for r in db.get_recipes()] == ["Public"]
    assert len(db.get_recipes(public_only=False)) == 2
    assert db.count_recipes() == 2


def test_search_recipes(db):
    db.add_recipe(_recipe("Banana Bread", description="Sweet loaf"))
    db.add_recipe(_recipe("Pad Thai", cuisine="Thai"))
    db.add_recipe(_recipe("Secret Banana", is_public=False))

    assert [r.name for r in db.search_recipes("BANANA")] == ["Banana Bread"]
    assert [r.name for r in db.search_recipes("loaf")] == ["Banana Bread"]
    assert [r.name for r in db.search_recipes("thai")] == ["Pad Thai"]


def test_suggestions_ordered_by_score_then_newest(db):
    a = db.add_recipe(_recipe("A"))
    b = db.add_recipe(_recipe("B"))
    c = db.add_recipe(_recipe("C"))
    db.add_suggestion(_suggestion(a, 40, suggested_at=datetime(2026, 3, 10, 9, 0)))
    db.add_suggestion(_suggestion(b, 80))
    db.add_suggestion(_suggestion(c, 40, suggested_at=datetime(2026, 3, 10, 10, 0)))

    suggestions = db.get_suggestions(1)
    assert [s.recipe.name for s in suggestions] == ["B", "C", "A"]
    assert suggestions[0].recipe.id == b
    assert suggestions[0].matching_ingredients == ["1 egg"]


def test_viewed_and_accepted(db):
    recipe_id = db.add_recipe(_recipe("A"))
    first = db.add_suggestion(_suggestion(recipe_id, 50))
    second = db.add_suggestion(_suggestion(recipe_id, 50))

    assert db.mark_suggestion_viewed(first) is True
    assert db.accept_suggestion(second) is True
    assert db.get_suggestions(1) == []

    history = db.get_suggestions(1, unviewed_only=False)
    accepted = {s.id: s.accepted for s in history}
    assert accepted == {first: False, second: True}
    assert all(s.viewed for s in history)


def test_delete_unviewed_suggestions_keeps_history(db):
    recipe_id = db.add_recipe(_recipe("A"))
    viewed = db.add_suggestion(_suggestion(recipe_id, 50))
    db.mark_suggestion_viewed(viewed)
    db.add_suggestion(_suggestion(recipe_id, 60))
    db.add_suggestion(_suggestion(recipe_id, 60, user_id=2))

    assert db.delete_unviewed_suggestions(1, recipe_id) == 1
    assert [s.id for s in db.get_suggestions(1, unviewed_only=False)] == [viewed]
    assert len(db.get_suggestions(2)) == 1


def test_mark_missing_suggestion(db):
    assert db.mark_suggestion_viewed(99) is False
    assert db.accept_suggestion(99) is False


def test_replace_suggestion(db):
    recipe_id = db.add_recipe(_recipe("A"))
    viewed = db.add_suggestion(_suggestion(recipe_id, 40))
    db.mark_suggestion_viewed(viewed)
    db.add_suggestion(_suggestion(recipe_id, 50))

    new_id = db.replace_suggestion(_suggestion(recipe_id, 70))

    ids = {s.id: s.match_score for s in db.get_suggestions(1, unviewed_only=False)}
    assert ids == {viewed: 40, new_id: 70}


def test_get_suggestion(db):
    recipe_id = db.add_recipe(_recipe("A"))
    sid = db.add_suggestion(_suggestion(recipe_id, 40))
    assert db.get_suggestion(sid).recipe_id == recipe_id
    assert db.get_suggestion(999) is None


def test_save_recipe_upsert(db):
    recipe_id = db.add_recipe(_recipe("Omelette"))

    first = db.save_recipe(1, recipe_id, notes="add chives")
    assert first.favorite is True
    assert first.notes == "add chives"
    assert first.recipe.name == "Omelette"

    again = db.save_recipe(1, recipe_id, favorite=False)
    assert again.id == first.id
    assert again.favorite is False
    assert again.notes == "add chives"

    kept = db.save_recipe(1, recipe_id, favorite=None)
    assert kept.favorite is False
    assert len(db.get_user_recipes(1)) == 1


def test_rate_recipe_creates_and_updates(db):
    recipe_id = db.add_recipe(_recipe("Omelette"))

    rated = db.rate_recipe(1, recipe_id, 3)
    assert rated.rating == 3
    assert rated.favorite is False

    rated = db.rate_recipe(1, recipe_id, 5, notes="perfect")
    assert rated.rating == 5
    assert rated.notes == "perfect"
    assert rated.times_cooked == 0
    assert rated.last_made is None


@pytest.mark.parametrize("rating", [0, 6, -1])
def test_rate_recipe_out_of_range(db, rating):
    recipe_id = db.add_recipe(_recipe("Omelette"))
    with pytest.raises(ValueError, match="between 1 and 5"):
        db.rate_recipe(1, recipe_id, rating)


def test_save_unknown_recipe(db):
    with pytest.raises(sqlite3.IntegrityError):
        db.save_recipe(1, 999)


def test_get_user_recipes_per_user(db):
    a = db.add_recipe(_recipe("A"))
    b = db.add_recipe(_recipe("B"))
    db.save_recipe(1, a)
    db.save_recipe(1, b)
    db.save_recipe(2, a)

    assert {s.recipe.name for s in db.get_user_recipes(1)} == {"A", "B"}
    assert [s.recipe.name for s in db.get_user_recipes(2)] == ["A"]
    assert db.get_user_recipes(3) == []


def test_get_popular_recipes(db):
    unrated = db.add_recipe(_recipe("Unrated"))
    good = db.add_recipe(_recipe("Good"))
    best = db.add_recipe(_recipe("Best"))
    hidden = db.add_recipe(_recipe("Hidden", is_public=False))
    db.rate_recipe(1, good, 3)
    db.rate_recipe(2, good, 4)
    db.rate_recipe(1, best, 5)
    db.rate_recipe(1, hidden, 5)
    db.save_recipe(3, unrated)

    popular = db.get_popular_recipes()

    assert [p.recipe.name for p in popular] == ["Best", "Good", "Unrated"]
    assert popular[1].average_rating == 3.5
    assert popular[1].rating_count == 2
    assert popular[2].average_rating is None
    assert popular[2].rating_count == 0
