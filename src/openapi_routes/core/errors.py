"""Exceptions raised while assembling routes from an API document."""

from __future__ import annotations


class OpenApiRoutesError(Exception):
    """Base class for every error raised by openapi-routes."""

    pass


class ConfigurationError(OpenApiRoutesError):
    """Initialization inputs are missing or invalid.

    Raised before any route is registered.  Route modules that cannot be
    loaded are reported the same way.
    """

    pass


class ApiDocValidationError(OpenApiRoutesError):
    """The API document failed schema validation.

    Attributes:
        errors: Structured validation failures, one dict per error with
            ``path``, ``message`` and ``validator`` keys.
    """

    def __init__(self, message: str, errors: list[dict]) -> None:
        super().__init__(message)
        self.errors = errors
