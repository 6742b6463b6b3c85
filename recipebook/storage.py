"""Storage port shared by the HTTP and RPC gateways.

Backends implement :class:`RecipeStore`; gateways only ever talk to this
interface and pick up an instance at construction time.
"""
import logging
from abc import ABC, abstractmethod
from typing import List

from .errors import ConfigError
from .recipes import Recipe

logger = logging.getLogger(__name__)

MEMORY_BACKENDS = ("inmem",)
SQL_BACKENDS = ("sql", "mysql", "sqlite")


class RecipeStore(ABC):
    @abstractmethod
    def add_recipe(self, recipe: Recipe) -> None:
        """Create the recipe, or fully replace an existing one of that name.

        Raises:
            StorageError: the backend could not persist the recipe.
        """

    @abstractmethod
    def get_recipe(self, name: str) -> Recipe:
        """Return the recipe stored under ``name``.

        Raises:
            NotFound: no recipe has that name.
            StorageError: the backend could not be read.
        """

    @abstractmethod
    def find_recipes(self, ingredients: List[str]) -> List[Recipe]:
        """Return recipes using all of ``ingredients``, sorted by name.

        An empty ``ingredients`` list matches every recipe.

        Raises:
            StorageError: the backend could not be read.
        """

    def close(self) -> None:
        pass


def open_store(settings) -> RecipeStore:
    """Build the backend selected by ``settings.dbms``."""
    kind = (settings.dbms or "").lower()
    if kind in MEMORY_BACKENDS:
        from .memdb import MemoryRecipeStore

        logger.info("using inmem database")
        return MemoryRecipeStore()
    if kind in SQL_BACKENDS:
        from .db import create_db_engine
        from .sqldb import SqlRecipeStore

        logger.info("using %s database", kind)
        engine = create_db_engine(settings.constring)
        return SqlRecipeStore(engine, create_schema=settings.create_schema)
    raise ConfigError(f"unknown DBMS ({settings.dbms}) specified")
