"""Built-in request pipeline stages.

Each builder takes the construction inputs for one operation and returns an
async ``(request, call_next)`` middleware operating on an
:class:`~openapi_routes.middleware.request.OperationRequest`.

Modules
-------
defaults
    Fill in declared ``default`` values.
coercion
    Convert raw string values to their declared types.
validation
    Validate parameters and body against their schemas.
response_validation
    Attach a ``validate_response`` callable for handlers to use.
request
    The per-request value container the stages share.
"""

from openapi_routes.middleware.coercion import build_coercion_middleware
from openapi_routes.middleware.defaults import build_defaults_middleware
from openapi_routes.middleware.request import OperationRequest
from openapi_routes.middleware.response_validation import build_response_validation_middleware
from openapi_routes.middleware.validation import build_validation_middleware

__all__ = [
    "OperationRequest",
    "build_coercion_middleware",
    "build_defaults_middleware",
    "build_response_validation_middleware",
    "build_validation_middleware",
]
