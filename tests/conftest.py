"""Shared pytest fixtures for openapi-routes tests."""

import copy
from pathlib import Path
from typing import Callable

import pytest

from openapi_routes.core.pipeline import Pipeline

FIXTURES = Path(__file__).parent / "fixtures"


class RecordingRouter:
    """Route registrar that records registrations instead of serving them."""

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, Pipeline]] = []

    def register(self, method: str, path: str, pipeline: Pipeline) -> None:
        self.routes.append((method, path, pipeline))

    def pipeline(self, method: str, path: str) -> Pipeline:
        """Return the pipeline registered for *method* and *path*."""
        for registered_method, registered_path, pipeline in self.routes:
            if registered_method == method and registered_path == path:
                return pipeline
        raise KeyError(f"{method} {path} was not registered")

    @property
    def paths(self) -> list[tuple[str, str]]:
        return [(method, path) for method, path, _ in self.routes]


@pytest.fixture
def router() -> RecordingRouter:
    """A fresh recording router."""
    return RecordingRouter()


@pytest.fixture
def routes_dir() -> Path:
    """The sample widget route modules."""
    return FIXTURES / "routes"


@pytest.fixture
def api_doc() -> dict:
    """A valid Swagger 2.0 document for the sample widget routes.

    Returns:
        A fresh document per test, so tests may modify it freely.
    """
    return copy.deepcopy(
        {
            "swagger": "2.0",
            "info": {"title": "Widget API", "version": "1.0.0"},
            "basePath": "/v1",
            "definitions": {
                "Widget": {
                    "type": "object",
                    "required": ["name"],
                    "properties": {
                        "id": {"type": "integer"},
                        "name": {"type": "string"},
                    },
                }
            },
            "paths": {},
        }
    )


@pytest.fixture
def make_routes(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write route modules into a temporary routes directory.

    Returns:
        Callable taking ``{relative_file: source}`` and returning the
        directory.
    """
    routes = tmp_path / "routes"
    routes.mkdir()

    def write(files: dict[str, str]) -> Path:
        for relative, source in files.items():
            target = routes / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(source)
        return routes

    return write
