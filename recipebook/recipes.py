import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from .errors import ValidationError

@dataclass
class Recipe:
    name: str
    ingredients: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        lines = [self.name]
        lines.extend(f"  - {i}" for i in self.ingredients)
        return "\n".join(lines)

    def uses_ingredient(self, ingredient: str) -> bool:
        """Return True if the recipe lists ``ingredient`` (exact match)."""
        return any(i == ingredient for i in self.ingredients)

    def uses_ingredients(self, ingredients: Iterable[str]) -> bool:
        """Return True if the recipe uses every one of ``ingredients``.

        An empty query matches any recipe.
        """
        return all(self.uses_ingredient(i) for i in ingredients)

    def add_ingredient(self, ingredient: str) -> None:
        # keeps existing order; duplicates are a no-op
        if not self.uses_ingredient(ingredient):
            self.ingredients.append(ingredient)

    def copy(self) -> "Recipe":
        return Recipe(name=self.name, ingredients=list(self.ingredients))


def validate_new_recipe(recipe: Recipe) -> None:
    if not recipe.name:
        raise ValidationError("no name specified")
    if not recipe.ingredients:
        raise ValidationError("no ingredients specified")


def validate_query(ingredients: List[str]) -> None:
    if not ingredients:
        raise ValidationError("no ingredients specified")


def load_recipes(path):
    """Load recipes from a JSON file and return a list of Recipe objects.

    Args:
        path (str or Path): Path to a JSON array of
            ``{"name": ..., "ingredients": [...]}`` objects.

    Returns:
        list: list of Recipe objects; empty if the file does not exist.
    """
    p = Path(path)
    if not p.exists():
        return []
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)

    recipes = []
    for item in data:
        recipe = Recipe(name=item.get("name", ""))
        for ingredient in item.get("ingredients") or []:
            recipe.add_ingredient(ingredient)
        recipes.append(recipe)
    return recipes
