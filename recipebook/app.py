import logging

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from . import middleware, schemas
from .errors import NotFound, StorageError, ValidationError
from .normalize import parse_ingredient_query
from .recipes import validate_new_recipe, validate_query
from .storage import RecipeStore

logger = logging.getLogger(__name__)

router = APIRouter()


def get_store(request: Request) -> RecipeStore:
    return request.app.state.store


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(content=message, status_code=status_code)


@router.post("/recipe")
async def add_recipe(request: Request, store: RecipeStore = Depends(get_store)):
    # Body is parsed by hand so bad JSON is a 400 with our message, not a 422
    body = await request.body()
    try:
        payload = schemas.Recipe.model_validate_json(body)
    except PydanticValidationError:
        raise ValidationError("error unmarshalling recipe")

    recipe = payload.to_entity()
    validate_new_recipe(recipe)

    try:
        await run_in_threadpool(store.add_recipe, recipe)
    except StorageError as exc:
        logger.error("writing recipe %r: %s", recipe.name, exc)
        return _error(500, "error writing recipe to database")
    return Response(status_code=200, media_type=middleware.JSON_CONTENT_TYPE)


@router.get("/recipe/{name:path}", response_model=schemas.Recipe)
def get_recipe(name: str, store: RecipeStore = Depends(get_store)):
    try:
        recipe = store.get_recipe(name)
    except StorageError as exc:
        logger.error("reading recipe %r: %s", name, exc)
        return _error(500, "error reading recipe from database")
    return schemas.Recipe.from_entity(recipe)


@router.get("/recipes", response_model=schemas.Recipes)
def find_recipes(ingredients: str | None = None, store: RecipeStore = Depends(get_store)):
    query = parse_ingredient_query(ingredients)
    validate_query(query)
    try:
        found = store.find_recipes(query)
    except StorageError as exc:
        logger.error("finding recipes %r: %s", query, exc)
        return _error(500, "error reading recipes from database")
    return schemas.Recipes(recipes=[schemas.Recipe.from_entity(r) for r in found])


async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(400, str(exc))


async def not_found_handler(request: Request, exc: NotFound):
    return Response(status_code=404, media_type=middleware.JSON_CONTENT_TYPE)


def add_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFound, not_found_handler)


def create_app(store: RecipeStore, api_key: str) -> FastAPI:
    """HTTP/JSON gateway over ``store``, guarded by ``api_key``."""
    app = FastAPI(title="recipebook HTTP API", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.store = store
    app.include_router(router)
    add_error_handlers(app)
    middleware.install(app, api_key=api_key)
    return app
