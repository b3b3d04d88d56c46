"""
HTTP Routes Module

Translates HTTP requests into KVStore operations.

Endpoints:
    POST   /data         Merge a JSON object of string pairs into the store
    GET    /data         Return every pair as a JSON object
    DELETE /data/{key}   Remove one key (404 if absent)
    GET    /stats        Return total_requests and database_size

Every route is counted exactly once per request by wrapping its handler
with counting() before FastAPI dispatches to it.
"""

import logging
from typing import Awaitable, Callable, Dict, Type

from fastapi import APIRouter, FastAPI, HTTPException, Request, Response
from fastapi.routing import APIRoute
from pydantic import TypeAdapter, ValidationError

from .. import __version__
from ..cache.store import KVStore

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]

_pairs = TypeAdapter(Dict[str, str])


def counting(store: KVStore, handler: Handler) -> Handler:
    """
    Wrap a request handler so every call counts one request.

    The count happens before the wrapped handler reads the body, so
    requests rejected during validation are counted too.

    Args:
        store: Store holding the request counter
        handler: The handler to wrap

    Returns:
        A handler with the same signature
    """

    async def counted(request: Request) -> Response:
        store.increment_requests()
        return await handler(request)

    return counted


def counting_route(store: KVStore) -> Type[APIRoute]:
    """Build an APIRoute class whose handlers are wrapped with counting()."""

    class CountingRoute(APIRoute):
        def get_route_handler(self) -> Handler:
            return counting(store, super().get_route_handler())

    return CountingRoute


def parse_pairs(body: bytes) -> Dict[str, str]:
    """
    Decode a request body into string pairs.

    Raises:
        HTTPException: 400 if the body is not a JSON object whose keys
            and values are all strings
    """
    try:
        return _pairs.validate_json(body, strict=True)
    except ValidationError as exc:
        logger.debug(f"Rejected body: {exc.error_count()} error(s)")
        raise HTTPException(status_code=400, detail="Invalid JSON") from exc


def build_router(store: KVStore) -> APIRouter:
    """Create the router for the data and stats endpoints bound to store."""
    router = APIRouter(route_class=counting_route(store))

    @router.post("/data", status_code=201)
    async def post_data(request: Request) -> Response:
        pairs = parse_pairs(await request.body())
        store.set(pairs)
        return Response(status_code=201)

    @router.get("/data")
    def get_data() -> Dict[str, str]:
        return store.get_all()

    @router.delete("/data/{key}", status_code=204)
    def delete_data(key: str) -> Response:
        if not store.delete(key):
            raise HTTPException(status_code=404, detail="Key not found")
        return Response(status_code=204)

    @router.get("/stats")
    def get_stats() -> Dict[str, int]:
        return store.stats().to_dict()

    return router


def create_app(store: KVStore) -> FastAPI:
    """
    Create the FastAPI application serving store.

    Args:
        store: The KVStore shared by every request

    Returns:
        FastAPI app with the store available as app.state.store
    """
    app = FastAPI(title="KV-Store", version=__version__)
    app.state.store = store
    app.include_router(build_router(store))
    return app
