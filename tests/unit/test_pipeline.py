"""Tests for openapi_routes.core.pipeline — pipeline assembly and execution.

Tests cover:
- Fixed stage order and the inclusion rule of every built-in stage.
- Each permission removing exactly its own stage.
- The master permission removing every built-in stage.
- Handler lists kept in their own order.
- Running sync and async units through ``call_next``.
- Plain functions running in the thread pool, off the event loop.
"""

from __future__ import annotations

import asyncio
import dataclasses
import threading
import time

import pytest

from openapi_routes.core.flags import StagePermissions
from openapi_routes.core.pipeline import Pipeline, PipelineBuilder, Stage
from openapi_routes.middleware.request import OperationRequest

ALL_STAGES = ["defaults", "coercion", "validation", "response_validation"]


def handler(request):
    return {"ok": True}


def extra(request, call_next):
    return call_next(request)


@pytest.fixture
def builder() -> PipelineBuilder:
    return PipelineBuilder(definitions={})


@pytest.fixture
def operation() -> dict:
    return {"responses": {"200": {"description": "OK"}}}


@pytest.fixture
def parameters() -> list[dict]:
    return [
        {"name": "id", "in": "path", "required": True, "type": "integer"},
        {"name": "limit", "in": "query", "type": "integer", "default": 10},
    ]


class TestPipelineBuilder:
    """Test PipelineBuilder.build stage selection and order."""

    def test_full_order(self, builder, operation, parameters):
        """Every stage present, in the fixed order."""
        pipeline = builder.build(operation, parameters, StagePermissions(), [extra], handler)
        assert pipeline.kinds == ALL_STAGES + ["additional", "handler"]
        assert pipeline.funcs[-2:] == [extra, handler]

    def test_defaults_need_a_default(self, builder, operation):
        """Without any default value the defaults stage is left out."""
        parameters = [{"name": "id", "in": "path", "required": True, "type": "string"}]
        pipeline = builder.build(operation, parameters, StagePermissions(), [], handler)
        assert pipeline.kinds == ["coercion", "validation", "response_validation", "handler"]

    def test_no_parameters_no_parameter_stages(self, builder, operation):
        """An empty parameter list skips defaults, coercion and validation."""
        pipeline = builder.build(operation, [], StagePermissions(), [], handler)
        assert pipeline.kinds == ["response_validation", "handler"]

    def test_no_responses_no_response_validation(self, builder, parameters):
        """Response validation requires a responses object."""
        pipeline = builder.build({}, parameters, StagePermissions(), [], handler)
        assert "response_validation" not in pipeline.kinds

    @pytest.mark.parametrize("field", ALL_STAGES)
    def test_permission_removes_exactly_one_stage(self, builder, operation, parameters, field):
        """Disabling one stage leaves every other stage in place."""
        permissions = dataclasses.replace(StagePermissions(), **{field: False})
        pipeline = builder.build(operation, parameters, permissions, [extra], handler)
        expected = [kind for kind in ALL_STAGES if kind != field] + ["additional", "handler"]
        assert pipeline.kinds == expected

    def test_master_permission_removes_built_in_stages(self, builder, operation, parameters):
        """Middleware disabled keeps only additional middleware and handler."""
        permissions = StagePermissions(middleware=False)
        pipeline = builder.build(operation, parameters, permissions, [extra], handler)
        assert pipeline.kinds == ["additional", "handler"]

    def test_missing_operation_keeps_handler_only(self, builder, parameters):
        """A handler without an operation document gets no built-in stages."""
        pipeline = builder.build(None, parameters, StagePermissions(), [], handler)
        assert pipeline.kinds == ["handler"]

    def test_handler_list_order_preserved(self, builder, operation):
        """Handler lists are appended unchanged, after additional middleware."""
        pipeline = builder.build(operation, [], StagePermissions(), [extra], [extra, handler])
        assert pipeline.kinds == ["response_validation", "additional", "handler", "handler"]
        assert pipeline.funcs[1:] == [extra, extra, handler]


class TestPipeline:
    """Test Pipeline construction and execution."""

    def test_empty_pipeline_rejected(self):
        """A pipeline needs a handler."""
        with pytest.raises(ValueError):
            Pipeline([])

    def test_for_handler(self):
        """for_handler wraps a single handler."""
        pipeline = Pipeline.for_handler(handler)
        assert pipeline.kinds == ["handler"]
        assert len(pipeline) == 1

    def test_runs_sync_and_async_units_in_order(self):
        """Units see the request in order and the handler result comes back."""
        calls = []

        def first(request, call_next):
            calls.append("first")
            return call_next(request)

        async def second(request, call_next):
            calls.append("second")
            return await call_next(request)

        async def endpoint(request):
            calls.append("endpoint")
            return {"calls": list(calls)}

        pipeline = Pipeline(
            [Stage("additional", first), Stage("additional", second), Stage("handler", endpoint)]
        )
        result = asyncio.run(pipeline.run(OperationRequest()))
        assert result == {"calls": ["first", "second", "endpoint"]}

    def test_middleware_can_short_circuit(self):
        """A unit that does not call call_next ends the pipeline."""

        def gate(request, call_next):
            return {"blocked": True}

        pipeline = Pipeline([Stage("additional", gate), Stage("handler", handler)])
        assert asyncio.run(pipeline.run(OperationRequest())) == {"blocked": True}

    def test_built_pipeline_coerces_before_handler(self, builder, operation, parameters):
        """Built-in stages prepare the request the handler sees."""

        def endpoint(request):
            return request.query["limit"], request.path_params["id"], request.validate_response is not None

        pipeline = builder.build(operation, parameters, StagePermissions(), [], endpoint)
        request = OperationRequest(path_params={"id": "7"})
        assert asyncio.run(pipeline.run(request)) == (10, 7, True)


class TestThreadPool:
    """Test that plain functions run off the event loop."""

    def test_sync_handler_runs_in_worker_thread(self):
        """A plain handler does not run on the event loop's thread."""

        def endpoint(request):
            return threading.get_ident()

        async def main():
            return threading.get_ident(), await Pipeline.for_handler(endpoint).run(OperationRequest())

        loop_thread, handler_thread = asyncio.run(main())
        assert handler_thread != loop_thread

    def test_async_handler_runs_on_event_loop(self):
        """Coroutine handlers stay on the event loop's thread."""

        async def endpoint(request):
            return threading.get_ident()

        async def main():
            return threading.get_ident(), await Pipeline.for_handler(endpoint).run(OperationRequest())

        loop_thread, handler_thread = asyncio.run(main())
        assert handler_thread == loop_thread

    def test_sync_middleware_gets_downstream_result(self):
        """call_next in a plain middleware returns the result, even from a coroutine handler."""
        seen = []

        def wrap(request, call_next):
            result = call_next(request)
            seen.append(result)
            return {"wrapped": result}

        async def endpoint(request):
            return {"id": 1}

        pipeline = Pipeline([Stage("additional", wrap), Stage("handler", endpoint)])
        assert asyncio.run(pipeline.run(OperationRequest())) == {"wrapped": {"id": 1}}
        assert seen == [{"id": 1}]

    def test_downstream_errors_reach_sync_middleware(self):
        """Exceptions raised after call_next propagate through a plain middleware."""
        caught = []

        def guard(request, call_next):
            try:
                return call_next(request)
            except LookupError as exc:
                caught.append(str(exc))
                raise

        async def endpoint(request):
            raise LookupError("no widget")

        pipeline = Pipeline([Stage("additional", guard), Stage("handler", endpoint)])
        with pytest.raises(LookupError):
            asyncio.run(pipeline.run(OperationRequest()))
        assert caught == ["no widget"]

    def test_blocking_handlers_run_concurrently(self):
        """Blocking handlers overlap instead of running one after another."""

        def endpoint(request):
            time.sleep(0.3)
            return request.query["n"]

        pipeline = Pipeline([Stage("additional", extra), Stage("handler", endpoint)])

        async def main():
            return await asyncio.gather(*(pipeline.run(OperationRequest(query={"n": n})) for n in range(4)))

        started = time.perf_counter()
        assert asyncio.run(main()) == [0, 1, 2, 3]
        assert time.perf_counter() - started < 0.9
