from typing import List, Optional
from urllib.parse import quote

import httpx

from . import schemas
from .pipeline import API_KEY_HEADER


class HttpClient:
    """Client for the HTTP API (direct or through the RPC gateway)."""

    def __init__(self, base_url: str, api_key: str, client: Optional[httpx.Client] = None, timeout: float = 10.0):
        self.client = client if client is not None else httpx.Client(base_url=base_url, timeout=timeout)
        self.headers = {API_KEY_HEADER: api_key}

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self.client.close()

    def add_recipe(self, recipe: schemas.Recipe) -> None:
        res = self.client.post(
            "/recipe",
            content=recipe.model_dump_json(),
            headers={**self.headers, "Content-Type": "application/json"},
        )
        res.raise_for_status()

    def get_recipe(self, name: str) -> Optional[schemas.Recipe]:
        res = self.client.get(f"/recipe/{quote(name, safe='')}", headers=self.headers)
        if res.status_code == 404:
            return None
        res.raise_for_status()
        return schemas.Recipe.model_validate_json(res.content)

    def find_recipes(self, ingredients: List[str]) -> List[schemas.Recipe]:
        res = self.client.get("/recipes", params={"ingredients": ",".join(ingredients)}, headers=self.headers)
        res.raise_for_status()
        return schemas.Recipes.model_validate_json(res.content).recipes
