# Matching is exact and case-sensitive: no trimming, folding or synonyms here
from typing import Iterable, List


def unique_ingredients(items: Iterable[str]) -> List[str]:
    """Drop repeated ingredients, keeping the first occurrence order."""
    return list(dict.fromkeys(items))


def parse_ingredient_query(value: str | None) -> List[str]:
    """Turn a ``a,b,c`` query value into a list of ingredient names.

    Empty items (``a,,b`` or a trailing comma) are discarded.
    """
    if not value:
        return []
    return unique_ingredients(i for i in value.split(",") if i)
