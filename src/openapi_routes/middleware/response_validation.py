"""Response validation stage.

The stage does not inspect a finished response.  It attaches a
``validate_response(status_code, body)`` callable to the request before the
handler runs, and handlers decide what to do with the result.
"""

from __future__ import annotations

from typing import Any, Callable

from .request import OperationRequest
from .validation import ErrorTransformer, collect_errors, make_validator


def build_response_validator(
    *,
    responses: dict,
    definitions: dict | None = None,
    error_transformer: ErrorTransformer | None = None,
    custom_formats: dict[str, Callable[[Any], bool]] | None = None,
) -> Callable[[Any, Any], dict | None]:
    """Build a ``validate_response(status_code, body)`` callable.

    Args:
        responses: The operation's ``responses`` object.
        definitions: Shared definitions from the API document.
        error_transformer: Optional callable applied to each reported error.
        custom_formats: Format name to predicate mapping.

    Returns:
        Callable returning ``None`` for a valid response, otherwise a dict
        with ``message`` and ``errors`` keys.
    """
    validators = {}
    for status, response in responses.items():
        if isinstance(response, dict) and isinstance(response.get("schema"), dict):
            validators[str(status)] = make_validator(
                {"type": "object", "properties": {"response": response["schema"]}},
                definitions,
                custom_formats,
            )

    def validate_response(status_code: Any, body: Any) -> dict | None:
        status = str(status_code)
        if status not in responses:
            if "default" not in responses:
                return {
                    "message": "An unknown status code was used and no default was provided.",
                    "errors": [],
                }
            status = "default"

        validator = validators.get(status)
        if validator is None:
            return None

        errors = collect_errors(validator, {"response": body}, error_transformer)
        if errors:
            return {"message": "The response was not valid.", "errors": errors}
        return None

    return validate_response


def build_response_validation_middleware(
    *,
    responses: dict,
    definitions: dict | None = None,
    error_transformer: ErrorTransformer | None = None,
    custom_formats: dict[str, Callable[[Any], bool]] | None = None,
):
    """Build middleware that attaches a response validator to the request."""
    validate_response = build_response_validator(
        responses=responses,
        definitions=definitions,
        error_transformer=error_transformer,
        custom_formats=custom_formats,
    )

    async def response_validation_middleware(request: OperationRequest, call_next) -> Any:
        request.validate_response = validate_response
        return await call_next(request)

    return response_validation_middleware
