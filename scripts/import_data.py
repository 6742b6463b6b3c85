import sys
from pathlib import Path

from recipebook.config import read_settings
from recipebook.main import seed_store
from recipebook.storage import open_store


def main():
    p = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(__file__).resolve().parents[1] / 'data' / 'recipes.json'
    if not p.exists():
        print(f'{p} not found')
        return
    # http_port is irrelevant here but required by the settings model
    settings = read_settings(http_port=0)
    store = open_store(settings)
    try:
        added = seed_store(store, p)
    finally:
        store.close()
    print(f'Imported {added} recipes')


if __name__ == '__main__':
    main()
