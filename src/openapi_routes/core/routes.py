"""Discovery and loading of route modules.

Layout
------
Every ``.py`` file below the routes directory defines the operations of one
path template, taken from its location relative to that directory::

    routes/
    ├── index.py            ->  /
    ├── widgets.py          ->  /widgets
    └── widgets/
        ├── {id}.py         ->  /widgets/{id}
        └── {id}/
            └── parts.py    ->  /widgets/{id}/parts

Files whose name starts with an underscore (``__init__.py``, private
helpers) are skipped.

Route Modules
-------------
A route module defines handlers as module attributes named after lowercase
HTTP methods, optionally a ``parameters`` list shared by every method, and
vendor flags as attributes spelled with underscores::

    from openapi_routes import operation

    parameters = [{"name": "id", "in": "path", "required": True, "type": "integer"}]
    x_openapi_routes_disable_coercion_middleware = False

    @operation({"responses": {"200": {"description": "A widget."}}})
    def get(request):
        return {"id": request.path_params["id"]}

A handler may also be a list of callables; the last one is the endpoint and
carries the operation document.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable

from .document import HTTP_METHODS
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredRoute:
    """A route module file and the path template it serves."""

    route: str
    path: Path


def operation(api_doc: dict) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator attaching an operation document to a handler as ``api_doc``."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        func.api_doc = api_doc
        return func

    return decorator


def _route_for(relative: Path) -> str:
    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] == "index":
        parts = parts[:-1]
    return "/" + "/".join(parts)


def _sort_key(route: DiscoveredRoute) -> list[tuple[int, str]]:
    # Literal segments sort ahead of parameter segments at the same depth.
    return [(1 if segment.startswith("{") else 0, segment) for segment in route.route.split("/")]


def discover_routes(routes_dir: Path) -> list[DiscoveredRoute]:
    """Find every route module below *routes_dir*.

    Args:
        routes_dir: Directory containing route modules.

    Returns:
        Discovered routes, literal segments ordered before parameters.
    """
    routes = [
        DiscoveredRoute(route=_route_for(path.relative_to(routes_dir)), path=path)
        for path in routes_dir.rglob("*.py")
        if not path.name.startswith("_") and path.is_file()
    ]
    return sorted(routes, key=_sort_key)


def import_route_file(path: Path) -> ModuleType:
    """Import a route module from its file path.

    Raises:
        ConfigurationError: If the file cannot be imported.
    """
    digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:12]
    module_name = f"openapi_routes._route_{digest}"

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot load route module {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        del sys.modules[module_name]
        raise ConfigurationError(f"Failed to import route module {path}: {e}") from e
    return module


def route_module_from(module: ModuleType) -> dict[str, Any]:
    """Build the route module mapping from an imported module.

    Method handlers and ``parameters`` are copied over; ``x_...`` attributes
    become ``x-...`` vendor flags.
    """
    route_module: dict[str, Any] = {}

    for name, value in vars(module).items():
        if name in HTTP_METHODS or name == "parameters":
            route_module[name] = value
        elif name.startswith("x_"):
            route_module[name.replace("_", "-")] = value

    return route_module


def load_route_module(path: Path) -> dict[str, Any]:
    """Import *path* and return its route module mapping."""
    logger.debug("Loading route module %s", path)
    return route_module_from(import_route_file(path))


def operation_doc(handler: Any) -> dict | None:
    """The operation document attached to a handler or handler list."""
    if isinstance(handler, (list, tuple)):
        handler = handler[-1] if handler else None
    api_doc = getattr(handler, "api_doc", None)
    return api_doc if isinstance(api_doc, dict) else None
