"""Coercion stage: convert raw string parameter values to declared types.

Only ``path``, ``query``, ``header`` and ``formData`` parameters are
coerced; the JSON body already carries typed values.  A value that cannot
be converted is left as it is so request validation can report it.

Array parameters are split according to ``collectionFormat``:

=========  =========
Format     Separator
=========  =========
csv        ``,``
ssv        space
tsv        tab
pipes      ``|``
multi      repeated key
=========  =========
"""

from __future__ import annotations

from typing import Any, Callable

from .request import OperationRequest, value_key

COLLECTION_SEPARATORS = {
    "csv": ",",
    "ssv": " ",
    "tsv": "\t",
    "pipes": "|",
}


def _to_integer(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return value
    return value


def _to_number(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return value
    return value


def _to_boolean(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return value


_SCALAR_COERCERS: dict[str, Callable[[Any], Any]] = {
    "integer": _to_integer,
    "number": _to_number,
    "boolean": _to_boolean,
}


def build_coercer(schema: dict) -> Callable[[Any], Any] | None:
    """Return a converter for values of the given parameter/items schema.

    Returns ``None`` when the type needs no conversion.
    """
    schema_type = schema.get("type")
    if schema_type in _SCALAR_COERCERS:
        return _SCALAR_COERCERS[schema_type]

    if schema_type == "array":
        separator = COLLECTION_SEPARATORS.get(schema.get("collectionFormat", "csv"))
        items = schema.get("items")
        item_coercer = build_coercer(items) if isinstance(items, dict) else None

        def to_array(value: Any) -> Any:
            if isinstance(value, str):
                value = value.split(separator) if separator and value != "" else [value]
            if not isinstance(value, list):
                return value
            if item_coercer is None:
                return value
            return [item_coercer(item) for item in value]

        return to_array

    return None


def build_coercion_middleware(*, parameters: list[dict]):
    """Build middleware that coerces request values in place.

    Args:
        parameters: Merged, duplicate-free parameter list.

    Returns:
        An async ``(request, call_next)`` middleware.
    """
    coercers = []
    for parameter in parameters:
        if parameter.get("in") == "body":
            continue
        coercer = build_coercer(parameter)
        if coercer is not None:
            coercers.append((parameter.get("in", ""), value_key(parameter), coercer))

    async def coercion_middleware(request: OperationRequest, call_next) -> Any:
        for location, key, coercer in coercers:
            container = request.container(location)
            if container is not None and key in container:
                container[key] = coercer(container[key])
        return await call_next(request)

    return coercion_middleware
