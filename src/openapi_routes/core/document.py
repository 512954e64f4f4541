"""API document helpers: vendor flag names, copying, paths and tags.

The API document is a plain ``dict`` in Swagger 2.0 shape.  Two instances
exist during initialization:

- the **original**, supplied by the caller and only ever read, and
- the **working copy**, produced by :func:`copy_document`, which
  accumulates the parameters, operations and tags that were actually
  registered and is what the docs endpoint serves.

Vendor Flags
------------
All flags share the ``x-openapi-routes-`` prefix and may appear on the
global document, a route module, a path item or an operation.

==============================  =========================================
Constant                        Meaning
==============================  =========================================
``DISABLE_MIDDLEWARE``          Skip every built-in stage
``DISABLE_DEFAULTS``            Skip the defaults stage
``DISABLE_COERCION``            Skip the coercion stage
``DISABLE_VALIDATION``          Skip the request validation stage
``DISABLE_RESPONSE_VALIDATION`` Skip the response validation stage
``ADDITIONAL_MIDDLEWARE``       List of extra middleware callables
``INHERIT_ADDITIONAL``          ``False`` stops inheriting from ancestors
==============================  =========================================
"""

from __future__ import annotations

import copy
import re
from typing import Any

FLAG_PREFIX = "x-openapi-routes-"

DISABLE_MIDDLEWARE = FLAG_PREFIX + "disable-middleware"
DISABLE_DEFAULTS = FLAG_PREFIX + "disable-defaults-middleware"
DISABLE_COERCION = FLAG_PREFIX + "disable-coercion-middleware"
DISABLE_VALIDATION = FLAG_PREFIX + "disable-validation-middleware"
DISABLE_RESPONSE_VALIDATION = FLAG_PREFIX + "disable-response-validation-middleware"
ADDITIONAL_MIDDLEWARE = FLAG_PREFIX + "additional-middleware"
INHERIT_ADDITIONAL = FLAG_PREFIX + "inherit-additional-middleware"

# $ref path items are not handled.
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")

_BRACE_SEGMENT = re.compile(r"^\{([^}]+)\}$")
_COLON_SEGMENT = re.compile(r"^:(.+)$")


def copy_document(value: Any) -> Any:
    """Return a structural, JSON-style deep copy of *value*.

    Dicts, lists and tuples are rebuilt recursively, tuples as lists.
    Callables, such as middleware listed in vendor extensions, are dropped
    from dicts and lists.  Every other value is deep-copied as-is, so values
    like ``Decimal`` or ``datetime`` defaults survive and are left to the
    JSON encoder of the docs endpoint.

    Args:
        value: Document, fragment or scalar to copy.

    Returns:
        The copied value.
    """
    if isinstance(value, dict):
        return {
            str(key): copy_document(item)
            for key, item in value.items()
            if not callable(item)
        }
    if isinstance(value, (list, tuple)):
        return [copy_document(item) for item in value if not callable(item)]
    return copy.deepcopy(value)


def to_router_path(template: str) -> str:
    """Translate an OpenAPI path template into colon-parameter notation.

    Only segments that are wholly ``{name}`` are rewritten; malformed braces
    pass through untouched.

        >>> to_router_path("/widgets/{id}/parts")
        '/widgets/:id/parts'
    """
    return "/".join(_BRACE_SEGMENT.sub(r":\1", segment) for segment in template.split("/"))


def to_starlette_path(path: str) -> str:
    """Translate colon-parameter notation into Starlette's brace notation."""
    return "/".join(_COLON_SEGMENT.sub(r"{\1}", segment) for segment in path.split("/"))


def add_operation_tag(api_doc: dict, tag: Any) -> None:
    """Add *tag* to the document's tag list unless a tag of that name exists.

    Non-string tags are ignored.
    """
    if not isinstance(tag, str):
        return

    tags = api_doc.get("tags") or []
    if tag not in [entry.get("name") for entry in tags if isinstance(entry, dict)]:
        tags.append({"name": tag})
    api_doc["tags"] = tags


def sort_tags(api_doc: dict) -> None:
    """Sort the document's tag list by name, ascending."""
    tags = api_doc.get("tags")
    if isinstance(tags, list):
        # Names are unique after add_operation_tag, so ties never occur.
        tags.sort(key=lambda entry: str(entry.get("name", "")))
