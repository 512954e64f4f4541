"""Configuration management for openapi-routes.

Settings are loaded with Pydantic Settings from environment variables with
the ``OPENAPI_ROUTES_`` prefix, a ``.env`` file in the working directory,
and finally the defaults below, in that priority order.

Example .env file::

    OPENAPI_ROUTES_API_DOC_FILE=api-doc.json
    OPENAPI_ROUTES_ROUTES_DIR=routes
    OPENAPI_ROUTES_DOCS_PATH=/api-docs
    OPENAPI_ROUTES_SERVER_PORT=8000

The ``docs_path``, ``expose_api_docs`` and ``validate_api_doc`` values are
the defaults :func:`~openapi_routes.api.initialize.initialize` falls back to
when the caller does not pass them.  The remaining fields are used by the
``openapi-routes`` console script.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OpenApiRoutesConfig(BaseSettings):
    """Main configuration for openapi-routes.

    Attributes
    ----------
    api_doc_file : Path | None
        JSON file holding the API document served by the console script.
    routes_dir : Path
        Directory of route modules served by the console script.
    docs_path : str
        Path, below ``basePath``, of the API document endpoint.
    expose_api_docs : bool
        Register the API document endpoint.
    validate_api_doc : bool
        Validate the document before and after routes are registered.
    server_host : str
        Bind address for uvicorn.
    server_port : int
        Port for uvicorn (1024-65535).
    log_level : str
        Root logging level used by the console script.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="OPENAPI_ROUTES_",
        case_sensitive=False,
    )

    api_doc_file: Path | None = Field(
        default=None,
        description="JSON file holding the API document",
    )
    routes_dir: Path = Field(
        default=Path("routes"),
        description="Directory of route modules",
    )

    docs_path: str = Field(
        default="/api-docs",
        description="Path of the API document endpoint, below basePath",
        pattern=r"^/",
    )
    expose_api_docs: bool = Field(
        default=True,
        description="Register the API document endpoint",
    )
    validate_api_doc: bool = Field(
        default=True,
        description="Validate the API document before and after registration",
    )

    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root logging level",
    )


# Global configuration instance, loaded from the environment at import time.
config = OpenApiRoutesConfig()
