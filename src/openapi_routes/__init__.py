"""openapi-routes - build request pipelines from a Swagger 2.0 document."""

__version__ = "0.1.0"

from openapi_routes.api.initialize import InitializedApi, initialize
from openapi_routes.core.errors import ApiDocValidationError, ConfigurationError, OpenApiRoutesError
from openapi_routes.core.routes import operation
from openapi_routes.middleware.request import OperationRequest

__all__ = [
    "ApiDocValidationError",
    "ConfigurationError",
    "InitializedApi",
    "OpenApiRoutesError",
    "OperationRequest",
    "initialize",
    "operation",
]
