from typing import Callable, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field

from . import recipes
from .normalize import unique_ingredients


class Recipe(BaseModel):
    name: Optional[str] = Field(
        default="", json_schema_extra={"example": "BLT"}
    )
    ingredients: Optional[List[str]] = Field(
        default_factory=list,
        json_schema_extra={"example": ["Tomato", "Bacon", "Lettuce"]},
    )

    @classmethod
    def from_entity(cls, recipe: recipes.Recipe) -> "Recipe":
        return cls(name=recipe.name, ingredients=list(recipe.ingredients))

    def to_entity(self) -> recipes.Recipe:
        return recipes.Recipe(
            name=self.name or "",
            ingredients=unique_ingredients(self.ingredients or []),
        )


class Recipes(BaseModel):
    recipes: List[Recipe] = Field(default_factory=list)


class RecipeRequest(BaseModel):
    name: str = ""


class FindRequest(BaseModel):
    ingredients: List[str] = Field(default_factory=list)


class Empty(BaseModel):
    pass


M = TypeVar("M", bound=BaseModel)


def encode(message: BaseModel) -> bytes:
    """Serialize a wire model for the RPC transport."""
    return message.model_dump_json().encode("utf-8")


def decoder(model: Type[M]) -> Callable[[bytes], M]:
    def decode(data: bytes) -> M:
        return model.model_validate_json(data or b"{}")

    return decode
