"""Route initialization: from API document and route modules to live routes.

:func:`initialize` is the single entry point.  For every route module found
below the routes directory it:

1. translates the path template to router notation,
2. seeds the working path item's ``parameters`` from the route module,
3. for every HTTP method the module defines, resolves additional middleware,
   records tags, merges parameters, evaluates the stage flags, builds the
   pipeline and registers it under ``basePath`` + the translated path.

The caller's document is validated before anything is registered and the
working copy is validated again once every route is in place.  Either
failure is fatal.

Usage
-----
::

    from fastapi import FastAPI
    from openapi_routes import initialize

    app = FastAPI()
    api = initialize(app=app, api_doc=api_doc, routes="routes")
    api.api_doc  # the finalized working document
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from openapi_routes.core.config import config
from openapi_routes.core.document import (
    HTTP_METHODS,
    add_operation_tag,
    copy_document,
    sort_tags,
    to_router_path,
)
from openapi_routes.core.errors import ApiDocValidationError, ConfigurationError
from openapi_routes.core.flags import resolve_additional_middleware, stage_permissions
from openapi_routes.core.parameters import merge_parameters
from openapi_routes.core.pipeline import Pipeline, PipelineBuilder
from openapi_routes.core.routes import discover_routes, load_route_module, operation_doc
from openapi_routes.core.schema import validate_api_doc as validate_document

from .router import RouteRegistrar, as_router

logger = logging.getLogger(__name__)


class InitializeOptions(BaseModel):
    """Validated initialization inputs.

    Attributes:
        app: Starlette/FastAPI application or route registrar.
        api_doc: The API document.
        routes: Existing directory holding route modules.
        docs_path: Path of the API document endpoint, below ``basePath``.
        expose_api_docs: Register the API document endpoint.
        validate_api_doc: Validate the document before and after registration.
        error_transformer: Callable applied to validation errors.
        custom_formats: Format name to predicate mapping for schemas.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    app: Any
    api_doc: dict
    routes: Path
    docs_path: str
    expose_api_docs: bool
    validate_api_doc: bool
    error_transformer: Callable[..., Any] | None = None
    custom_formats: dict[str, Callable[..., Any]] | None = None

    @field_validator("app")
    @classmethod
    def _app_required(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("app must be a Starlette/FastAPI application")
        return value

    @field_validator("api_doc")
    @classmethod
    def _api_doc_required(cls, value: dict) -> dict:
        if not value:
            raise ValueError("api_doc is required")
        return value

    @field_validator("routes")
    @classmethod
    def _routes_is_directory(cls, value: Path) -> Path:
        if not value.is_dir():
            raise ValueError(f"routes was not a path to a directory: {value}")
        return value.resolve()

    @field_validator("docs_path")
    @classmethod
    def _docs_path_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("docs_path must start with '/'")
        return value


@dataclass
class InitializedApi:
    """Result of :func:`initialize`.

    Attributes:
        api_doc: The finalized working document.
    """

    api_doc: dict


def _check_document(api_doc: dict, stage: str) -> None:
    errors = validate_document(api_doc)
    if errors:
        logger.error("Validating API document %s", stage)
        logger.error("Validation errors: %s", json.dumps(errors, indent=2))
        raise ApiDocValidationError(f"api_doc was invalid {stage}. See the errors.", errors)


def initialize(
    app: Any,
    api_doc: dict,
    routes: str | Path,
    *,
    docs_path: str | None = None,
    expose_api_docs: bool | None = None,
    validate_api_doc: bool | None = None,
    error_transformer: Callable[..., Any] | None = None,
    custom_formats: dict[str, Callable[..., Any]] | None = None,
) -> InitializedApi:
    """Register a route and pipeline for every operation of every route module.

    Args:
        app: Starlette/FastAPI application, or an object with
            ``register(method, path, pipeline)``.
        api_doc: Swagger 2.0 document.  It is never modified.
        routes: Directory holding route modules.
        docs_path: Path of the API document endpoint; defaults to
            ``config.docs_path``.
        expose_api_docs: Register the API document endpoint; defaults to
            ``config.expose_api_docs``.
        validate_api_doc: Validate the document before and after
            registration; defaults to ``config.validate_api_doc``.
        error_transformer: ``(openapi_error, jsonschema_error)`` callable
            applied to every validation error.
        custom_formats: Format name to predicate mapping used by schema
            validation.

    Returns:
        :class:`InitializedApi` exposing the finalized working document.

    Raises:
        ConfigurationError: If an input is missing or invalid.
        ApiDocValidationError: If the document is invalid before or after
            routes are registered.
    """
    try:
        options = InitializeOptions(
            app=app,
            api_doc=api_doc,
            routes=routes,
            docs_path=config.docs_path if docs_path is None else docs_path,
            expose_api_docs=config.expose_api_docs if expose_api_docs is None else expose_api_docs,
            validate_api_doc=config.validate_api_doc if validate_api_doc is None else validate_api_doc,
            error_transformer=error_transformer,
            custom_formats=custom_formats,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid initialization arguments: {e}") from e

    router = as_router(options.app)

    if options.validate_api_doc:
        _check_document(options.api_doc, "before populating paths")

    # The caller's document is only read; every change goes to the copy.
    original_doc = options.api_doc
    working_doc = copy_document(original_doc)
    working_paths = working_doc.setdefault("paths", {})
    original_paths = original_doc.get("paths") or {}
    base_path = working_doc.get("basePath") or ""

    builder = PipelineBuilder(
        definitions=working_doc.get("definitions"),
        error_transformer=options.error_transformer,
        custom_formats=options.custom_formats,
    )

    for discovered in discover_routes(options.routes):
        route_module = load_route_module(discovered.path)
        _register_route_module(
            router,
            builder,
            discovered.route,
            discovered.path,
            route_module,
            original_doc,
            original_paths.get(discovered.route) or {},
            working_doc,
            working_paths,
            base_path,
        )

    sort_tags(working_doc)

    if options.validate_api_doc:
        _check_document(working_doc, "after populating paths")

    if options.expose_api_docs:
        def serve_api_doc(request):
            return working_doc

        router.register("get", base_path + options.docs_path, Pipeline.for_handler(serve_api_doc))
        logger.info("API document exposed at %s%s", base_path, options.docs_path)

    return InitializedApi(api_doc=working_doc)


def _register_route_module(
    router: RouteRegistrar,
    builder: PipelineBuilder,
    route: str,
    module_path: Path,
    route_module: dict,
    original_doc: dict,
    original_path_item: dict,
    working_doc: dict,
    working_paths: dict,
    base_path: str,
) -> None:
    path_item = working_paths.get(route) or {}
    path_parameters = route_module.get("parameters")
    path_parameters = copy_document(path_parameters) if isinstance(path_parameters, list) else []
    path_item["parameters"] = path_parameters
    working_paths[route] = path_item

    router_path = base_path + to_router_path(route)

    for method in HTTP_METHODS:
        if method not in route_module:
            continue

        handlers = route_module[method]
        _check_handlers(handlers, method, module_path)
        operation = operation_doc(handlers)
        additional_middleware = resolve_additional_middleware(
            original_doc, original_path_item, route_module, operation
        )

        for tag in (operation or {}).get("tags") or []:
            add_operation_tag(working_doc, tag)

        permissions = stage_permissions(working_doc, route_module, path_item, operation)
        parameters: list[dict] = []
        if operation is not None and permissions.middleware:
            path_item[method] = copy_document(operation)
            parameters = merge_parameters(path_parameters, copy_document(operation.get("parameters")))

        pipeline = builder.build(operation, parameters, permissions, additional_middleware, handlers)
        router.register(method, router_path, pipeline)


def _check_handlers(handlers: Any, method: str, module_path: Path) -> None:
    """Reject a method export that is not a handler or a list of callables."""
    if isinstance(handlers, (list, tuple)):
        if handlers and all(callable(handler) for handler in handlers):
            return
    elif callable(handlers):
        return
    raise ConfigurationError(
        f"Route module {module_path} exports {method!r}, which is not a callable or a non-empty list of callables"
    )
