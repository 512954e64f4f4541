"""Core pipeline assembly for openapi-routes.

- **document**: vendor flag names, document copying, path translation, tags
- **parameters**: path/operation parameter merging
- **flags**: stage gating and additional middleware resolution
- **pipeline**: ``Stage``, ``Pipeline`` and ``PipelineBuilder``
- **routes**: route module discovery and loading
- **schema**: Swagger 2.0 document validation
- **config**: settings loaded from ``OPENAPI_ROUTES_*`` environment variables
- **errors**: exception classes
"""

from openapi_routes.core.config import OpenApiRoutesConfig, config
from openapi_routes.core.pipeline import Pipeline, PipelineBuilder, Stage

__all__ = [
    "OpenApiRoutesConfig",
    "Pipeline",
    "PipelineBuilder",
    "Stage",
    "config",
]
