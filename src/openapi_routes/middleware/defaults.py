"""Defaults stage: fill in declared ``default`` values for missing parameters."""

from __future__ import annotations

import copy
from typing import Any

from .request import OperationRequest, value_key


def build_defaults_middleware(*, parameters: list[dict]):
    """Build middleware that applies parameter defaults.

    Args:
        parameters: Merged, duplicate-free parameter list.

    Returns:
        An async ``(request, call_next)`` middleware.
    """
    with_defaults = [parameter for parameter in parameters if "default" in parameter]

    async def defaults_middleware(request: OperationRequest, call_next) -> Any:
        for parameter in with_defaults:
            default = copy.deepcopy(parameter["default"])
            if parameter.get("in") == "body":
                if request.body is None:
                    request.body = default
                continue

            container = request.container(parameter.get("in", ""))
            if container is not None and value_key(parameter) not in container:
                container[value_key(parameter)] = default
        return await call_next(request)

    return defaults_middleware
