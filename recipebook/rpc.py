"""RPC gateway for the recipe catalog.

``RecipeService`` is served with grpc. Messages are the pydantic models from
``schemas`` carried as JSON bytes, so no generated stubs are needed: the
service is registered through a generic handler and the client builds its
callables straight from the channel.
"""
import logging
from concurrent import futures
from typing import List, Optional, Sequence, Tuple

import grpc

from . import schemas
from .errors import AuthError, NotFound, StorageError, ValidationError
from .pipeline import API_KEY_METADATA, authenticate, trace
from .recipes import validate_new_recipe, validate_query
from .storage import RecipeStore

logger = logging.getLogger(__name__)

SERVICE_NAME = "recipes.RecipeService"
MAX_WORKERS = 10

Metadata = Sequence[Tuple[str, str]]


def method_path(method: str) -> str:
    return f"/{SERVICE_NAME}/{method}"


class RecipeServicer:
    def __init__(self, store: RecipeStore):
        self.store = store

    def AddRecipe(self, request: schemas.Recipe, context) -> schemas.Empty:
        recipe = request.to_entity()
        try:
            validate_new_recipe(recipe)
        except ValidationError as exc:
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, str(exc))

        try:
            self.store.add_recipe(recipe)
        except StorageError as exc:
            logger.error("writing recipe %r: %s", recipe.name, exc)
            context.abort(grpc.StatusCode.INTERNAL, "error writing recipe to db")
        return schemas.Empty()

    def GetRecipe(self, request: schemas.RecipeRequest, context) -> schemas.Recipe:
        try:
            recipe = self.store.get_recipe(request.name)
        except NotFound as exc:
            context.abort(grpc.StatusCode.NOT_FOUND, str(exc))
        except StorageError as exc:
            logger.error("reading recipe %r: %s", request.name, exc)
            context.abort(grpc.StatusCode.INTERNAL, "error getting recipe from db")
        return schemas.Recipe.from_entity(recipe)

    def FindRecipes(self, request: schemas.FindRequest, context) -> schemas.Recipes:
        try:
            validate_query(request.ingredients)
        except ValidationError as exc:
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, str(exc))

        try:
            found = self.store.find_recipes(request.ingredients)
        except StorageError as exc:
            logger.error("finding recipes %r: %s", request.ingredients, exc)
            context.abort(grpc.StatusCode.INTERNAL, "error reading recipes from db")
        return schemas.Recipes(recipes=[schemas.Recipe.from_entity(r) for r in found])


_REQUEST_TYPES = {
    "AddRecipe": (schemas.Recipe, schemas.Empty),
    "GetRecipe": (schemas.RecipeRequest, schemas.Recipe),
    "FindRecipes": (schemas.FindRequest, schemas.Recipes),
}


def add_servicer_to_server(servicer: RecipeServicer, server: grpc.Server) -> None:
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, name),
            request_deserializer=schemas.decoder(request_type),
            response_serializer=schemas.encode,
        )
        for name, (request_type, _) in _REQUEST_TYPES.items()
    }
    server.add_generic_rpc_handlers(
        (grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),)
    )


def _with_behavior(handler, behavior):
    return grpc.unary_unary_rpc_method_handler(
        behavior,
        request_deserializer=handler.request_deserializer,
        response_serializer=handler.response_serializer,
    )


class TracerInterceptor(grpc.ServerInterceptor):
    def intercept_service(self, continuation, handler_call_details):
        handler = continuation(handler_call_details)
        if handler is None or handler.unary_unary is None:
            return handler

        method = handler_call_details.method
        behavior = handler.unary_unary

        def traced(request, context):
            with trace(method):
                return behavior(request, context)

        return _with_behavior(handler, traced)


class ApiKeyInterceptor(grpc.ServerInterceptor):
    """Abort calls whose ``x-api-key`` metadata does not match ``api_key``."""

    def __init__(self, api_key: str):
        self.api_key = api_key

    def intercept_service(self, continuation, handler_call_details):
        supplied = [
            value
            for key, value in handler_call_details.invocation_metadata or ()
            if key == API_KEY_METADATA
        ]
        try:
            authenticate(self.api_key, supplied)
        except AuthError as exc:
            handler = continuation(handler_call_details)
            if handler is None:
                return None
            message = str(exc)

            def deny(request, context):
                context.abort(grpc.StatusCode.UNAUTHENTICATED, message)

            return _with_behavior(handler, deny)
        return continuation(handler_call_details)


def create_server(store: RecipeStore, api_key: str, max_workers: int = MAX_WORKERS) -> grpc.Server:
    """A grpc server serving RecipeService over ``store``; no port bound yet."""
    server = grpc.server(
        futures.ThreadPoolExecutor(max_workers=max_workers),
        interceptors=[TracerInterceptor(), ApiKeyInterceptor(api_key)],
    )
    add_servicer_to_server(RecipeServicer(store), server)
    return server


class RecipeClient:
    """Client for RecipeService.

    ``api_key`` is attached as ``x-api-key`` metadata on every call unless the
    call passes its own ``metadata``.
    """

    def __init__(self, target: str, api_key: Optional[str] = None, channel: Optional[grpc.Channel] = None):
        self.channel = channel if channel is not None else grpc.insecure_channel(target)
        self.api_key = api_key
        self._stubs = {
            name: self.channel.unary_unary(
                method_path(name),
                request_serializer=schemas.encode,
                response_deserializer=schemas.decoder(response_type),
            )
            for name, (_, response_type) in _REQUEST_TYPES.items()
        }

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self.channel.close()

    def _invoke(self, method: str, request, metadata: Optional[Metadata], timeout: Optional[float]):
        if metadata is None:
            metadata = ((API_KEY_METADATA, self.api_key),) if self.api_key is not None else ()
        return self._stubs[method](request, metadata=tuple(metadata), timeout=timeout)

    def add_recipe(self, recipe: schemas.Recipe, metadata: Optional[Metadata] = None, timeout: Optional[float] = None) -> None:
        self._invoke("AddRecipe", recipe, metadata, timeout)

    def get_recipe(self, name: str, metadata: Optional[Metadata] = None, timeout: Optional[float] = None) -> Optional[schemas.Recipe]:
        """Return the named recipe, or None when the server reports NOT_FOUND."""
        try:
            return self._invoke("GetRecipe", schemas.RecipeRequest(name=name), metadata, timeout)
        except grpc.RpcError as exc:
            if exc.code() == grpc.StatusCode.NOT_FOUND:
                return None
            raise

    def find_recipes(self, ingredients: List[str], metadata: Optional[Metadata] = None, timeout: Optional[float] = None) -> List[schemas.Recipe]:
        rsp = self._invoke("FindRecipes", schemas.FindRequest(ingredients=list(ingredients)), metadata, timeout)
        return rsp.recipes
