import logging
import threading
from contextlib import nullcontext
from typing import List

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from . import crud
from .db import init_db, make_session_factory
from .errors import NotFound, StorageError
from .normalize import unique_ingredients
from .recipes import Recipe
from .storage import RecipeStore

logger = logging.getLogger(__name__)


class SqlRecipeStore(RecipeStore):
    """Relational backend: recipes, ingredients and a join table.

    Each call borrows one pooled connection for the length of its session.
    Ingredient lists come back in lexical order. When the engine hands every
    session the same connection (in-memory SQLite), calls run one at a time.
    """

    def __init__(self, engine: Engine, create_schema: bool = False):
        self.engine = engine
        self.SessionLocal = make_session_factory(engine)
        self._lock = threading.Lock() if isinstance(engine.pool, StaticPool) else nullcontext()
        self.ping()
        if create_schema or engine.dialect.name == "sqlite":
            try:
                init_db(engine)
            except SQLAlchemyError as exc:
                raise StorageError(f"creating schema: {exc}") from exc

    def ping(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StorageError(f"pinging database: {exc}") from exc

    def close(self) -> None:
        self.engine.dispose()

    def add_recipe(self, recipe: Recipe) -> None:
        ingredients = unique_ingredients(recipe.ingredients)
        with self._lock, self.SessionLocal() as db:
            try:
                crud.add_recipe(db, recipe.name, ingredients)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise StorageError(f"adding recipe: {exc}") from exc

    def get_recipe(self, name: str) -> Recipe:
        with self._lock, self.SessionLocal() as db:
            return self._get_recipe(db, name)

    def find_recipes(self, ingredients: List[str]) -> List[Recipe]:
        query = unique_ingredients(ingredients)
        with self._lock, self.SessionLocal() as db:
            try:
                names = crud.find_recipe_names(db, query)
            except SQLAlchemyError as exc:
                raise StorageError(f"finding recipes: {exc}") from exc

            # one lookup per match to load full ingredient lists
            recipes = []
            for name in names:
                try:
                    recipes.append(self._get_recipe(db, name))
                except NotFound as exc:
                    raise StorageError(f"reading recipe: {exc}") from exc

        recipes.sort(key=lambda r: r.name)
        return recipes

    def _get_recipe(self, db, name: str) -> Recipe:
        try:
            ingredients = crud.get_recipe_ingredients(db, name)
        except SQLAlchemyError as exc:
            raise StorageError(f"executing query: {exc}") from exc
        if not ingredients:
            raise NotFound(name)
        return Recipe(name=name, ingredients=ingredients)
