"""Assembly and execution of per-operation request pipelines.

Stage Order
-----------
A pipeline is built in a fixed order, earliest first:

1. ``defaults``: parameters exist, one declares a default, permitted
2. ``coercion``: parameters exist, permitted
3. ``validation``: parameters exist, permitted
4. ``response_validation``: the operation declares responses, permitted
5. ``additional``: resolved operator middleware, in resolved order
6. ``handler``: the operation's handler, or each unit of its handler list

Defaults populate values before coercion converts them, and coercion runs
before validation inspects them.  Response validation only attaches a
validator to the request, so it sits ahead of the handler that will use it.

Execution
---------
Every unit except the last is called as ``unit(request, call_next)``; the
last is the endpoint proper and is called as ``unit(request)``.  Coroutine
units run on the event loop and await ``call_next``.  Plain functions run in
Starlette's thread pool, so blocking handlers do not stall other requests;
their ``call_next`` is synchronous and returns the downstream result.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Literal

import anyio.from_thread
from starlette.concurrency import run_in_threadpool

from openapi_routes.middleware import (
    build_coercion_middleware,
    build_defaults_middleware,
    build_response_validation_middleware,
    build_validation_middleware,
)

from .flags import StagePermissions
from .parameters import has_defaults

StageKind = Literal[
    "defaults",
    "coercion",
    "validation",
    "response_validation",
    "additional",
    "handler",
]


@dataclass(frozen=True)
class Stage:
    """One callable unit of a pipeline, tagged with the step it belongs to."""

    kind: StageKind
    func: Callable[..., Any]


class Pipeline:
    """An ordered, immutable sequence of stages ending in a handler."""

    def __init__(self, stages: list[Stage] | tuple[Stage, ...]) -> None:
        if not stages:
            raise ValueError("A pipeline needs at least one handler stage.")
        self.stages: tuple[Stage, ...] = tuple(stages)

    @classmethod
    def for_handler(cls, handler: Callable[..., Any]) -> "Pipeline":
        """Pipeline with a single handler and nothing in front of it."""
        return cls([Stage("handler", handler)])

    @property
    def kinds(self) -> list[str]:
        """Stage kinds in execution order."""
        return [stage.kind for stage in self.stages]

    @property
    def funcs(self) -> list[Callable[..., Any]]:
        """Stage callables in execution order."""
        return [stage.func for stage in self.stages]

    def __len__(self) -> int:
        return len(self.stages)

    def __repr__(self) -> str:
        return f"Pipeline({' -> '.join(self.kinds)})"

    async def run(self, request: Any) -> Any:
        """Run *request* through every stage and return the handler's result."""
        return await self._dispatch(0, request)

    async def _dispatch(self, index: int, request: Any) -> Any:
        func = self.stages[index].func
        last = index == len(self.stages) - 1

        if _is_async(func):
            if last:
                result = func(request)
            else:

                async def call_next(next_request: Any) -> Any:
                    return await self._dispatch(index + 1, next_request)

                result = func(request, call_next)
        elif last:
            result = await run_in_threadpool(func, request)
        else:

            def call_next(next_request: Any) -> Any:
                return anyio.from_thread.run(self._dispatch, index + 1, next_request)

            result = await run_in_threadpool(func, request, call_next)

        if inspect.isawaitable(result):
            result = await result
        return result


def _is_async(func: Callable[..., Any]) -> bool:
    if inspect.iscoroutinefunction(func):
        return True
    return inspect.iscoroutinefunction(getattr(func, "__call__", None))


class PipelineBuilder:
    """Builds pipelines for the operations of one API document.

    Attributes:
        definitions: Shared schema definitions from the working document.
        error_transformer: Optional callable passed to the validation stages.
        custom_formats: Optional format registry passed to the validation
            stages.
    """

    def __init__(
        self,
        definitions: dict | None = None,
        error_transformer: Callable[..., Any] | None = None,
        custom_formats: dict[str, Callable[[Any], bool]] | None = None,
    ) -> None:
        self.definitions = definitions
        self.error_transformer = error_transformer
        self.custom_formats = custom_formats

    def build(
        self,
        operation: dict | None,
        parameters: list[dict],
        permissions: StagePermissions,
        additional_middleware: list[Callable[..., Any]],
        handlers: Callable[..., Any] | list[Callable[..., Any]],
    ) -> Pipeline:
        """Compose the pipeline for one operation.

        Args:
            operation: The operation document, or ``None`` when the handler
                carries none.
            parameters: Merged, duplicate-free parameter list.
            permissions: Stage permissions for this operation.
            additional_middleware: Resolved operator middleware.
            handlers: The handler, or a list of units ending in it.

        Returns:
            The assembled :class:`Pipeline`.
        """
        stages = []
        if operation is not None and permissions.middleware:
            stages.extend(self._built_in_stages(operation, parameters, permissions))

        stages.extend(Stage("additional", middleware) for middleware in additional_middleware)

        if isinstance(handlers, (list, tuple)):
            stages.extend(Stage("handler", handler) for handler in handlers)
        else:
            stages.append(Stage("handler", handlers))

        return Pipeline(stages)

    def _built_in_stages(
        self,
        operation: dict,
        parameters: list[dict],
        permissions: StagePermissions,
    ) -> list[Stage]:
        stages = []

        if parameters:
            if has_defaults(parameters) and permissions.defaults:
                stages.append(Stage("defaults", build_defaults_middleware(parameters=parameters)))

            if permissions.coercion:
                stages.append(Stage("coercion", build_coercion_middleware(parameters=parameters)))

            if permissions.validation:
                stages.append(
                    Stage(
                        "validation",
                        build_validation_middleware(
                            parameters=parameters,
                            schemas=self.definitions,
                            error_transformer=self.error_transformer,
                            custom_formats=self.custom_formats,
                        ),
                    )
                )

        responses = operation.get("responses")
        if isinstance(responses, dict) and permissions.response_validation:
            stages.append(
                Stage(
                    "response_validation",
                    build_response_validation_middleware(
                        responses=responses,
                        definitions=self.definitions,
                        error_transformer=self.error_transformer,
                        custom_formats=self.custom_formats,
                    ),
                )
            )

        return stages
