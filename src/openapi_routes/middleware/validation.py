"""Request validation stage, built on ``jsonschema``.

Every parameter declaration is turned into a JSON Schema property grouped by
location, so one validator checks the whole request:

.. code-block:: json

    {
      "type": "object",
      "properties": {
        "path":     {"type": "object", "properties": {...}, "required": [...]},
        "query":    {...},
        "headers":  {...},
        "formData": {...},
        "body":     {"$ref": "#/definitions/Widget"}
      },
      "definitions": {...}
    }

Swagger 2.0 schemas are draft 4, so :class:`jsonschema.Draft4Validator`
is used.  ``$ref`` pointers into ``#/definitions`` resolve against the
shared definitions embedded at the schema root.
"""

from __future__ import annotations

from typing import Any, Callable

import jsonschema
from fastapi import HTTPException

from .request import OperationRequest, value_key

# Parameter keys that describe transport rather than the value's schema.
_NON_SCHEMA_KEYS = {
    "name",
    "in",
    "description",
    "required",
    "allowEmptyValue",
    "collectionFormat",
    "schema",
}

_LOCATION_PROPERTIES = {
    "path": "path",
    "query": "query",
    "header": "headers",
    "formData": "formData",
}

ErrorTransformer = Callable[[dict, jsonschema.ValidationError], Any]


def make_validator(
    schema: dict,
    definitions: dict | None = None,
    custom_formats: dict[str, Callable[[Any], bool]] | None = None,
) -> jsonschema.Draft4Validator:
    """Create a draft 4 validator with shared definitions and custom formats.

    Args:
        schema: Root schema to validate against.
        definitions: Shared schema definitions for ``#/definitions`` refs.
        custom_formats: Format name to predicate mapping.

    Returns:
        A ready validator.
    """
    root = dict(schema)
    if definitions:
        root["definitions"] = definitions

    format_checker = jsonschema.FormatChecker()
    for name, check in (custom_formats or {}).items():
        format_checker.checks(name)(check)

    return jsonschema.Draft4Validator(root, format_checker=format_checker)


def parameter_schema(parameter: dict) -> dict:
    """The JSON Schema describing one parameter's value."""
    if parameter.get("in") == "body":
        return dict(parameter.get("schema") or {})
    return {key: value for key, value in parameter.items() if key not in _NON_SCHEMA_KEYS}


def build_request_schema(parameters: list[dict]) -> dict:
    """Group parameter schemas by location into one request schema."""
    properties: dict[str, Any] = {}
    required: list[str] = []

    for parameter in parameters:
        location = parameter.get("in")
        if location == "body":
            properties["body"] = parameter_schema(parameter)
            if parameter.get("required"):
                required.append("body")
            continue

        group_name = _LOCATION_PROPERTIES.get(location)
        if group_name is None:
            continue
        group = properties.setdefault(
            group_name, {"type": "object", "properties": {}, "required": []}
        )
        group["properties"][value_key(parameter)] = parameter_schema(parameter)
        if parameter.get("required"):
            group["required"].append(value_key(parameter))

    for group in properties.values():
        if group.get("required") == []:
            del group["required"]

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _request_instance(request: OperationRequest) -> dict:
    instance = {
        "path": request.path_params,
        "query": request.query,
        "headers": request.headers,
        "formData": request.form,
    }
    if request.body is not None:
        instance["body"] = request.body
    return instance


def to_openapi_error(error: jsonschema.ValidationError) -> dict:
    """Describe a jsonschema error in terms of the failing parameter."""
    error_path = [str(part) for part in error.absolute_path]
    location = error_path[0] if error_path else "request"

    if location in ("body", "response"):
        parts = error_path[1:]
    else:
        parts = error_path[1:2]

    # Missing properties are reported on their container object.
    if error.validator == "required":
        quoted = error.message.split("'")
        if len(quoted) > 2:
            parts.append(quoted[1])

    name = ".".join(parts) or location

    return {
        "path": name,
        "errorCode": f"{error.validator}.openapi.validation",
        "message": error.message,
        "location": "header" if location == "headers" else location,
    }


def collect_errors(
    validator: jsonschema.Draft4Validator,
    instance: Any,
    error_transformer: ErrorTransformer | None = None,
) -> list:
    """Validate *instance* and return its errors as openapi error dicts."""
    errors = []
    for error in sorted(validator.iter_errors(instance), key=lambda e: list(e.absolute_path)):
        openapi_error = to_openapi_error(error)
        if error_transformer is not None:
            openapi_error = error_transformer(openapi_error, error)
        errors.append(openapi_error)
    return errors


def build_validation_middleware(
    *,
    parameters: list[dict],
    schemas: dict | None = None,
    error_transformer: ErrorTransformer | None = None,
    custom_formats: dict[str, Callable[[Any], bool]] | None = None,
):
    """Build middleware that rejects requests not matching *parameters*.

    Args:
        parameters: Merged, duplicate-free parameter list.
        schemas: Shared definitions from the API document.
        error_transformer: Optional ``(openapi_error, jsonschema_error)``
            callable applied to each reported error.
        custom_formats: Format name to predicate mapping.

    Returns:
        An async ``(request, call_next)`` middleware.

    Raises:
        HTTPException: 400 from the middleware when validation fails; the
            detail is the list of errors.
    """
    validator = make_validator(build_request_schema(parameters), schemas, custom_formats)

    async def validation_middleware(request: OperationRequest, call_next) -> Any:
        errors = collect_errors(validator, _request_instance(request), error_transformer)
        if errors:
            raise HTTPException(status_code=400, detail=errors)
        return await call_next(request)

    return validation_middleware
