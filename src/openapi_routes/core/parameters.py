"""Merging of path-level and operation-level parameter declarations."""

from __future__ import annotations

from typing import Any


def parameter_key(parameter: dict) -> tuple[Any, Any]:
    """Identity of a parameter: its ``(name, in)`` pair."""
    return parameter.get("name"), parameter.get("in")


def without_duplicates(parameters: list[dict]) -> list[dict]:
    """Drop earlier parameters that share a ``(name, in)`` key with a later one.

    The list is scanned from the end so the last declaration of each key
    wins; survivors keep their relative order.

    Args:
        parameters: Parameter declarations in declaration order.

    Returns:
        New list with unique keys.
    """
    kept: list[dict] = []
    seen: set[tuple[Any, Any]] = set()

    for parameter in reversed(parameters):
        key = parameter_key(parameter)
        if key in seen:
            continue
        seen.add(key)
        kept.append(parameter)

    kept.reverse()
    return kept


def merge_parameters(path_parameters: list[dict], operation_parameters: Any) -> list[dict]:
    """Combine path and operation parameters, operation entries overriding.

    When the operation declares no parameter list the path list itself is
    returned, not a copy.

    Args:
        path_parameters: Parameters shared by every method on the path.
        operation_parameters: The operation's ``parameters`` value, possibly
            missing.

    Returns:
        Duplicate-free parameter list.
    """
    if not isinstance(operation_parameters, list):
        return path_parameters
    return without_duplicates(path_parameters + operation_parameters)


def has_defaults(parameters: list[dict]) -> bool:
    """Whether any parameter declares a ``default`` value."""
    return any(isinstance(parameter, dict) and "default" in parameter for parameter in parameters)
