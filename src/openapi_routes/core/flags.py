"""Vendor-flag resolution across the document hierarchy.

Two independent rules live here.

Stage gating (:func:`allows`, :func:`stage_permissions`) is a flat veto:
any document in the tuple that sets a ``disable`` flag to ``True`` removes
the stage for that operation.  No level can re-enable a stage another level
disabled.

Additional middleware (:func:`resolve_additional_middleware`) is an
ancestor walk over ``[global document, path item, route module,
operation]``, innermost first.  At each step the level one further out
contributes its list, unless the level being checked sets the inherit flag
to ``False``, which ends the walk.  The operation's own list is therefore
never collected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from .document import (
    ADDITIONAL_MIDDLEWARE,
    DISABLE_COERCION,
    DISABLE_DEFAULTS,
    DISABLE_MIDDLEWARE,
    DISABLE_RESPONSE_VALIDATION,
    DISABLE_VALIDATION,
    INHERIT_ADDITIONAL,
)

logger = logging.getLogger(__name__)


def allows(flag: str, *documents: Mapping | None) -> bool:
    """Return ``False`` if any supplied document sets *flag* to ``True``.

    Missing documents are ignored.  Only the boolean ``True`` vetoes; truthy
    values of other types do not.
    """
    return not any(document is not None and document.get(flag) is True for document in documents)


@dataclass(frozen=True)
class StagePermissions:
    """Which built-in pipeline stages one operation may use."""

    middleware: bool = True
    defaults: bool = True
    coercion: bool = True
    validation: bool = True
    response_validation: bool = True


def stage_permissions(*documents: Mapping | None) -> StagePermissions:
    """Evaluate every stage flag against the same document tuple.

    Args:
        *documents: Normally ``(working document, route module, working path
            item, operation)``.

    Returns:
        The resolved permissions.
    """
    return StagePermissions(
        middleware=allows(DISABLE_MIDDLEWARE, *documents),
        defaults=allows(DISABLE_DEFAULTS, *documents),
        coercion=allows(DISABLE_COERCION, *documents),
        validation=allows(DISABLE_VALIDATION, *documents),
        response_validation=allows(DISABLE_RESPONSE_VALIDATION, *documents),
    )


def declared_middleware(document: Mapping | None) -> list:
    """The additional middleware list a document declares, or ``[]``."""
    if document is None:
        return []
    middleware = document.get(ADDITIONAL_MIDDLEWARE)
    if isinstance(middleware, (list, tuple)):
        return list(middleware)
    return []


def resolve_additional_middleware(
    global_doc: Mapping | None,
    path_item: Mapping | None,
    route_module: Mapping | None,
    operation: Mapping | None,
) -> list[Callable[..., Any]]:
    """Collect operator-declared middleware for one operation.

    Outer levels end up first in the result.  Non-callable entries are
    dropped with a warning.

    Args:
        global_doc: The original, unmodified API document.
        path_item: The original path item for the route.
        route_module: The route module.
        operation: The operation document.

    Returns:
        Ordered list of middleware callables.
    """
    levels = [global_doc, path_item, route_module, operation]
    collected: list = []

    index = len(levels) - 1
    while index > 0:
        index -= 1
        current = levels[index + 1]
        parent = levels[index]

        if current is not None and current.get(INHERIT_ADDITIONAL) is False:
            break
        collected[:0] = declared_middleware(parent)

    middleware = []
    for entry in collected:
        if callable(entry):
            middleware.append(entry)
        else:
            logger.warning("Ignoring %r as middleware in %s list.", entry, ADDITIONAL_MIDDLEWARE)
    return middleware
