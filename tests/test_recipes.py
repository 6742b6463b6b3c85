# flake8: noqa
import sys
from pathlib import Path

# Ensure project root is on sys.path so `recipebook` can be imported when tests are run
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import json

import pytest

from recipebook.errors import ValidationError
from recipebook.normalize import parse_ingredient_query, unique_ingredients
from recipebook.recipes import Recipe, load_recipes, validate_new_recipe, validate_query


def blt():
    return Recipe(name="BLT", ingredients=["Tomato", "Bacon", "Lettuce"])


def test_uses_ingredient_is_exact_and_case_sensitive():
    r = blt()
    assert r.uses_ingredient("Tomato")
    assert not r.uses_ingredient("tomato")
    assert not r.uses_ingredient("Tomato ")
    assert not r.uses_ingredient("Cheese")


@pytest.mark.parametrize(
    "query,expected",
    (
        ([], True),
        (["Tomato"], True),
        (["Bacon", "Tomato"], True),
        (["Tomato", "Bacon", "Lettuce"], True),
        (["Tomato", "Cheese"], False),
        (["Cheese"], False),
    ),
)
def test_uses_ingredients(query, expected):
    assert blt().uses_ingredients(query) is expected


def test_add_ingredient_skips_duplicates_and_keeps_order():
    r = Recipe(name="Toast")
    r.add_ingredient("Bread")
    r.add_ingredient("Butter")
    r.add_ingredient("Bread")
    assert r.ingredients == ["Bread", "Butter"]


def test_str_lists_ingredients():
    assert str(blt()) == "BLT\n  - Tomato\n  - Bacon\n  - Lettuce"


def test_copy_does_not_share_ingredient_list():
    r = blt()
    c = r.copy()
    c.add_ingredient("Mayo")
    assert r.ingredients == ["Tomato", "Bacon", "Lettuce"]


def test_validate_new_recipe():
    validate_new_recipe(blt())

    with pytest.raises(ValidationError, match="no name specified"):
        validate_new_recipe(Recipe(name="", ingredients=["x"]))
    with pytest.raises(ValidationError, match="no ingredients specified"):
        validate_new_recipe(Recipe(name="Water"))


def test_validate_query():
    validate_query(["Tomato"])
    with pytest.raises(ValidationError, match="no ingredients specified"):
        validate_query([])


def test_unique_ingredients_keeps_first_occurrence():
    assert unique_ingredients(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
    # no case folding
    assert unique_ingredients(["Egg", "egg"]) == ["Egg", "egg"]


@pytest.mark.parametrize(
    "value,expected",
    (
        (None, []),
        ("", []),
        ("Tomato", ["Tomato"]),
        ("Tomato,Bacon", ["Tomato", "Bacon"]),
        ("Tomato,,Bacon,", ["Tomato", "Bacon"]),
        ("Ground Beef,Tomato,Tomato", ["Ground Beef", "Tomato"]),
    ),
)
def test_parse_ingredient_query(value, expected):
    assert parse_ingredient_query(value) == expected


def test_load_recipes(tmp_path):
    p = tmp_path / "recipes.json"
    p.write_text(
        json.dumps(
            [
                {"name": "BLT", "ingredients": ["Tomato", "Bacon", "Lettuce", "Tomato"]},
                {"name": "Water"},
            ]
        ),
        encoding="utf-8",
    )
    recipes = load_recipes(p)
    assert recipes == [
        Recipe(name="BLT", ingredients=["Tomato", "Bacon", "Lettuce"]),
        Recipe(name="Water", ingredients=[]),
    ]


def test_load_recipes_missing_file(tmp_path):
    assert load_recipes(tmp_path / "nope.json") == []
