"""openapi-routes — application layer.

Modules
-------
initialize
    :func:`initialize`, which assembles and registers every route.
router
    Binding of pipelines to Starlette/FastAPI applications.
main
    FastAPI application factory and the ``main()`` CLI entry point.
"""
