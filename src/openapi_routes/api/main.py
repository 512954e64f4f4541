"""openapi-routes — FastAPI application factory and CLI entry point.

The console script serves one API document and one routes directory, both
named by the configuration:

    OPENAPI_ROUTES_API_DOC_FILE=api-doc.json \\
    OPENAPI_ROUTES_ROUTES_DIR=routes \\
    openapi-routes

Direct invocation::

    python -m openapi_routes.api.main
"""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI

from openapi_routes import __version__
from openapi_routes.core.config import OpenApiRoutesConfig, config
from openapi_routes.core.errors import ConfigurationError

from .initialize import initialize

logger = logging.getLogger(__name__)


def load_api_doc(settings: OpenApiRoutesConfig) -> dict:
    """Read the JSON API document named by ``settings.api_doc_file``.

    Raises:
        ConfigurationError: If no file is configured or it cannot be parsed.
    """
    if settings.api_doc_file is None:
        raise ConfigurationError("api_doc_file is not configured (set OPENAPI_ROUTES_API_DOC_FILE)")

    try:
        with open(settings.api_doc_file, encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read API document {settings.api_doc_file}: {e}") from e


def create_app(settings: OpenApiRoutesConfig | None = None) -> FastAPI:
    """Build a FastAPI application serving the configured routes.

    The initialized API is stored on ``app.state.api``.

    Args:
        settings: Configuration to use; the global ``config`` by default.

    Returns:
        The ready application.
    """
    settings = settings or config
    api_doc = load_api_doc(settings)
    info = api_doc.get("info") or {}

    # The document is served by initialize(), not by FastAPI's own schema.
    app = FastAPI(
        title=info.get("title", "openapi-routes"),
        version=info.get("version", __version__),
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )
    app.state.api = initialize(
        app=app,
        api_doc=api_doc,
        routes=settings.routes_dir,
        docs_path=settings.docs_path,
        expose_api_docs=settings.expose_api_docs,
        validate_api_doc=settings.validate_api_doc,
    )
    return app


def main() -> None:
    """Launch the uvicorn ASGI server.

    Registered as the ``openapi-routes`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting openapi-routes %s", __version__)

    uvicorn.run(
        create_app(config),
        host=config.server_host,
        port=config.server_port,
    )


if __name__ == "__main__":
    main()
