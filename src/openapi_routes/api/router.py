"""Binding of assembled pipelines to a Starlette or FastAPI application.

Initialization talks to the application through one method,
``register(method, path, pipeline)``, with ``path`` in colon-parameter
notation (``/widgets/:id``).  Any object providing that method can be passed
as the ``app``; Starlette and FastAPI applications are wrapped in
:class:`StarletteRouter`.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from fastapi.encoders import jsonable_encoder
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from openapi_routes.core.document import to_starlette_path
from openapi_routes.core.errors import ConfigurationError
from openapi_routes.core.pipeline import Pipeline
from openapi_routes.middleware.request import OperationRequest

logger = logging.getLogger(__name__)


@runtime_checkable
class RouteRegistrar(Protocol):
    """Anything that can register a pipeline under a method and path."""

    def register(self, method: str, path: str, pipeline: Pipeline) -> None: ...


def as_response(result: Any) -> Response:
    """Turn a handler result into a Starlette response."""
    if isinstance(result, Response):
        return result
    return JSONResponse(jsonable_encoder(result))


def endpoint_for(pipeline: Pipeline):
    """Wrap *pipeline* as a Starlette endpoint."""

    async def endpoint(request: Request) -> Response:
        operation_request = await OperationRequest.from_starlette(request)
        return as_response(await pipeline.run(operation_request))

    return endpoint


class StarletteRouter:
    """Registers pipelines as routes on a Starlette/FastAPI application."""

    def __init__(self, app: Starlette) -> None:
        self.app = app

    def register(self, method: str, path: str, pipeline: Pipeline) -> None:
        """Add a route for *pipeline* at *path* (colon notation)."""
        starlette_path = to_starlette_path(path) or "/"
        self.app.router.add_route(
            starlette_path,
            endpoint_for(pipeline),
            methods=[method.upper()],
            include_in_schema=False,
        )
        logger.info("Registered %s %s -> %r", method.upper(), path, pipeline)


def as_router(app: Any) -> RouteRegistrar:
    """Return a registrar for *app*.

    Raises:
        ConfigurationError: If *app* is neither a Starlette application nor a
            registrar.
    """
    if isinstance(app, Starlette):
        return StarletteRouter(app)
    if isinstance(app, RouteRegistrar):
        return app
    raise ConfigurationError("app must be a Starlette/FastAPI application or provide register()")
