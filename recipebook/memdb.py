import threading
from typing import Dict, List

from .errors import NotFound
from .normalize import unique_ingredients
from .recipes import Recipe
from .storage import RecipeStore


class MemoryRecipeStore(RecipeStore):
    """Volatile store keyed by recipe name.

    Every access goes through ``_lock``; recipes are copied in and out so
    callers never share list objects with the map.
    """

    def __init__(self):
        self._recipes: Dict[str, Recipe] = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._recipes)

    def add_recipe(self, recipe: Recipe) -> None:
        stored = Recipe(name=recipe.name, ingredients=unique_ingredients(recipe.ingredients))
        with self._lock:
            self._recipes[stored.name] = stored

    def get_recipe(self, name: str) -> Recipe:
        with self._lock:
            recipe = self._recipes.get(name)
        if recipe is None:
            raise NotFound(name)
        return recipe.copy()

    def find_recipes(self, ingredients: List[str]) -> List[Recipe]:
        with self._lock:
            snapshot = dict(self._recipes)

        # dict order is insertion order; sort names so results are alphabetical
        matches = []
        for name in sorted(snapshot):
            recipe = snapshot[name]
            if recipe.uses_ingredients(ingredients):
                matches.append(recipe.copy())
        return matches
