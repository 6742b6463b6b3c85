from typing import List

from sqlalchemy import Table, delete, func, insert, select
from sqlalchemy.orm import Session

from . import models

# Dialects with a native "insert unless the unique key already exists"
_IGNORE_PREFIX = {
    "sqlite": "OR IGNORE",
    "mysql": "IGNORE",
    "mariadb": "IGNORE",
}


def _insert_ignore(db: Session, table: Table, name: str) -> None:
    prefix = _IGNORE_PREFIX.get(db.get_bind().dialect.name)
    if prefix:
        db.execute(insert(table).prefix_with(prefix), {"name": name})
        return
    exists = db.execute(select(table.c.id).where(table.c.name == name)).first()
    if exists is None:
        db.execute(insert(table), {"name": name})


def add_recipe(db: Session, name: str, ingredients: List[str]):
    """Write a recipe and its ingredient links; the caller commits.

    ``ingredients`` must not contain duplicates.
    """
    recipes = models.Recipe.__table__
    ingredients_table = models.Ingredient.__table__
    links = models.recipe_ingredients

    for ingredient in ingredients:
        _insert_ignore(db, ingredients_table, ingredient)

    recipe_id = select(recipes.c.id).where(recipes.c.name == name).scalar_subquery()

    # Existing links go first so an overwrite drops ingredients no longer listed
    db.execute(delete(links).where(links.c.recipe_id == recipe_id))
    _insert_ignore(db, recipes, name)

    for ingredient in ingredients:
        db.execute(
            insert(links).from_select(
                ["recipe_id", "ingredient_id"],
                select(recipe_id, ingredients_table.c.id).where(
                    ingredients_table.c.name == ingredient
                ),
            )
        )


def get_recipe_ingredients(db: Session, name: str) -> List[str]:
    links = models.recipe_ingredients
    rows = (
        db.query(models.Ingredient.name)
        .join(links, links.c.ingredient_id == models.Ingredient.id)
        .join(models.Recipe, models.Recipe.id == links.c.recipe_id)
        .filter(models.Recipe.name == name)
        .order_by(models.Ingredient.name)
        .all()
    )
    return [row[0] for row in rows]


def find_recipe_names(db: Session, ingredients: List[str]) -> List[str]:
    """Names of recipes linked to every one of ``ingredients``.

    ``ingredients`` must not contain duplicates, since the match relies on
    the per-recipe count of linked query ingredients.
    """
    links = models.recipe_ingredients
    if not ingredients:
        rows = (
            db.query(models.Recipe.name)
            .join(links, links.c.recipe_id == models.Recipe.id)
            .distinct()
            .all()
        )
        return [row[0] for row in rows]

    rows = (
        db.query(models.Recipe.name)
        .select_from(links)
        .join(models.Recipe, models.Recipe.id == links.c.recipe_id)
        .join(models.Ingredient, models.Ingredient.id == links.c.ingredient_id)
        .filter(models.Ingredient.name.in_(ingredients))
        .group_by(links.c.recipe_id, models.Recipe.name)
        .having(func.count() == len(ingredients))
        .all()
    )
    return [row[0] for row in rows]
