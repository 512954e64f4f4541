"""Mutable per-request view that pipeline stages operate on."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from starlette.requests import Request

logger = logging.getLogger(__name__)

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


@dataclass
class OperationRequest:
    """Request values grouped by Swagger parameter location.

    Starlette's request containers are immutable, while the defaults and
    coercion stages rewrite values in place, so every request is copied into
    plain dicts first.

    Attributes:
        path_params: Values for ``in: path`` parameters.
        query: Values for ``in: query`` parameters.  Repeated keys hold lists.
        headers: Values for ``in: header`` parameters, keys lower-cased.
        body: Parsed JSON body for the ``in: body`` parameter.
        form: Values for ``in: formData`` parameters.
        state: Scratch space shared by stages and the handler.
        request: The underlying Starlette request, when there is one.
        validate_response: Set by the response validation stage; call it
            with ``(status_code, body)`` to check a response.
    """

    path_params: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    form: dict[str, Any] = field(default_factory=dict)
    state: dict[str, Any] = field(default_factory=dict)
    request: Request | None = None
    validate_response: Callable[[Any, Any], dict | None] | None = None

    @classmethod
    async def from_starlette(cls, request: Request) -> "OperationRequest":
        """Copy a Starlette request into a new :class:`OperationRequest`."""
        query: dict[str, Any] = {}
        for key, value in request.query_params.multi_items():
            if key in query:
                existing = query[key]
                query[key] = existing + [value] if isinstance(existing, list) else [existing, value]
            else:
                query[key] = value

        content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
        body = None
        form: dict[str, Any] = {}

        if content_type in _FORM_TYPES:
            form_data = await request.form()
            form = {key: value for key, value in form_data.multi_items()}
        else:
            raw = await request.body()
            if raw:
                try:
                    body = json.loads(raw)
                except ValueError:
                    logger.debug("Request body is not JSON; keeping it as text.")
                    body = raw.decode("utf-8", errors="replace")

        return cls(
            path_params=dict(request.path_params),
            query=query,
            headers={key.lower(): value for key, value in request.headers.items()},
            body=body,
            form=form,
            request=request,
        )

    def container(self, location: str) -> dict[str, Any] | None:
        """Return the dict holding values for a non-body *location*."""
        if location == "path":
            return self.path_params
        if location == "query":
            return self.query
        if location == "header":
            return self.headers
        if location == "formData":
            return self.form
        return None


def value_key(parameter: dict) -> str:
    """Key under which a parameter's value is stored in its container."""
    name = str(parameter.get("name", ""))
    return name.lower() if parameter.get("in") == "header" else name
