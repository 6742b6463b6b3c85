"""HTTP facade that forwards the REST routes to the RPC gateway.

The facade does no authentication of its own: the caller's ``X-Api-Key``
header travels as ``x-api-key`` metadata and the RPC pipeline decides.
"""
import logging

import grpc
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from . import middleware, schemas
from .app import add_error_handlers
from .errors import ValidationError
from .normalize import parse_ingredient_query
from .pipeline import API_KEY_HEADER, API_KEY_METADATA
from .rpc import RecipeClient

logger = logging.getLogger(__name__)

STATUS_CODES = {
    grpc.StatusCode.UNAUTHENTICATED: 401,
    grpc.StatusCode.INVALID_ARGUMENT: 400,
    grpc.StatusCode.NOT_FOUND: 404,
}

router = APIRouter()


def get_client(request: Request) -> RecipeClient:
    return request.app.state.client


def forwarded_metadata(request: Request):
    return tuple((API_KEY_METADATA, key) for key in request.headers.getlist(API_KEY_HEADER))


@router.post("/recipe")
async def add_recipe(request: Request, client: RecipeClient = Depends(get_client)):
    body = await request.body()
    try:
        payload = schemas.Recipe.model_validate_json(body)
    except PydanticValidationError:
        raise ValidationError("error unmarshalling recipe")

    await run_in_threadpool(client.add_recipe, payload, metadata=forwarded_metadata(request))
    return Response(status_code=200, media_type=middleware.JSON_CONTENT_TYPE)


@router.get("/recipe/{name:path}", response_model=schemas.Recipe)
def get_recipe(name: str, request: Request, client: RecipeClient = Depends(get_client)):
    recipe = client.get_recipe(name, metadata=forwarded_metadata(request))
    if recipe is None:
        return Response(status_code=404, media_type=middleware.JSON_CONTENT_TYPE)
    return recipe


@router.get("/recipes", response_model=schemas.Recipes)
def find_recipes(request: Request, ingredients: str | None = None, client: RecipeClient = Depends(get_client)):
    # an empty list is rejected by the RPC side with INVALID_ARGUMENT
    query = parse_ingredient_query(ingredients)
    found = client.find_recipes(query, metadata=forwarded_metadata(request))
    return schemas.Recipes(recipes=found)


async def rpc_error_handler(request: Request, exc: grpc.RpcError):
    status_code = STATUS_CODES.get(exc.code(), 500)
    if status_code == 401:
        return Response(status_code=401, media_type=middleware.JSON_CONTENT_TYPE)
    if status_code == 500:
        logger.error("forwarding %s %s: %s %s", request.method, request.url.path, exc.code(), exc.details())
    return JSONResponse(content=exc.details() or "", status_code=status_code)


def create_gateway_app(client: RecipeClient) -> FastAPI:
    app = FastAPI(title="recipebook HTTP gateway", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.client = client
    app.include_router(router)
    add_error_handlers(app)
    app.add_exception_handler(grpc.RpcError, rpc_error_handler)
    middleware.install(app)
    return app
