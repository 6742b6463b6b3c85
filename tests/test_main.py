# flake8: noqa
import sys
from pathlib import Path

# Ensure project root is on sys.path so `recipebook` can be imported when tests are run
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import json
import logging

from recipebook.main import seed_store
from recipebook.memdb import MemoryRecipeStore

DATA = Path(__file__).resolve().parent.parent / "data" / "recipes.json"


def test_seed_store_loads_sample_data():
    store = MemoryRecipeStore()
    assert seed_store(store, DATA) == 3
    assert [r.name for r in store.find_recipes(["Tomato"])] == ["BLT", "Meatballs", "SpagBol"]


def test_seed_store_skips_invalid_entries(tmp_path, caplog):
    path = tmp_path / "recipes.json"
    path.write_text(
        json.dumps(
            [
                {"ingredients": ["Tomato"]},
                {"name": "", "ingredients": ["Tomato"]},
                {"name": "Water"},
                {"name": "BLT", "ingredients": ["Tomato", "Bacon"]},
            ]
        ),
        encoding="utf-8",
    )
    caplog.set_level(logging.WARNING, logger="recipebook")

    store = MemoryRecipeStore()
    assert seed_store(store, path) == 1

    assert [r.name for r in store.find_recipes(["Tomato"])] == ["BLT"]
    assert len(store) == 1
    skipped = [r for r in caplog.records if r.getMessage().startswith("skipping seed entry")]
    assert len(skipped) == 3


def test_seed_store_missing_file(tmp_path):
    store = MemoryRecipeStore()
    assert seed_store(store, tmp_path / "missing.json") == 0
    assert len(store) == 0
