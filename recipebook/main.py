import argparse
import logging
import signal
import threading

from .config import read_settings
from .errors import RecipeBookError, ValidationError
from .listeners import HybridListener, http_server, rpc_server
from .recipes import load_recipes, validate_new_recipe
from .storage import open_store

logger = logging.getLogger("recipebook")


def seed_store(store, path) -> int:
    """Add the recipes in the JSON file at ``path``; invalid entries are skipped."""
    added = 0
    for recipe in load_recipes(path):
        try:
            validate_new_recipe(recipe)
        except ValidationError as exc:
            logger.warning("skipping seed entry %r: %s", recipe.name, exc)
            continue
        store.add_recipe(recipe)
        added += 1
    return added


def build_listeners(mode, store, settings):
    if mode == "http":
        return http_server(store, settings.api_key, settings.http_port, settings.address, settings.http_grace)
    if mode == "rpc":
        return rpc_server(store, settings.api_key, settings.grpc_port, settings.address, settings.rpc_grace)
    return HybridListener(
        store,
        settings.api_key,
        http_port=settings.http_port,
        grpc_port=settings.grpc_port,
        address=settings.address,
        http_grace=settings.http_grace,
        rpc_grace=settings.rpc_grace,
    )


def wait_for_signal() -> None:
    stop = threading.Event()

    def handle(signum, frame):
        logger.info("received signal %d", signum)
        stop.set()

    signal.signal(signal.SIGINT, handle)
    signal.signal(signal.SIGTERM, handle)
    stop.wait()


def run(mode: str, seed: str | None = None) -> int:
    try:
        settings = read_settings()
    except RecipeBookError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("error reading config: %s", exc)
        return 1

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("service started")

    try:
        store = open_store(settings)
    except RecipeBookError as exc:
        logger.error("error opening database: %s", exc)
        return 1

    try:
        if seed:
            added = seed_store(store, seed)
            logger.info("seeded %d recipe(s) from %s", added, seed)

        listeners = build_listeners(mode, store, settings)
        listeners.start()
        try:
            wait_for_signal()
        finally:
            listeners.stop()
            listeners.wait()
    except RecipeBookError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        store.close()
        logger.info("service stopped")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="recipebook", description="Recipe catalog server")
    parser.add_argument("mode", choices=("http", "rpc", "hybrid"), help="which listeners to run")
    parser.add_argument("--seed", help="JSON file of recipes to load at startup")
    args = parser.parse_args(argv)
    return run(args.mode, seed=args.seed)


if __name__ == "__main__":
    raise SystemExit(main())
