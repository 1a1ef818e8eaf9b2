"""
FastAPI integration for storefront.wire.

    from storefront.wire.contrib import fastapi
    # fapp = fastapi.from_application(app, verifier)
"""

from ._fastapi import (
    STATUS_CODES,
    add_endpoint_to_app,
    compile_to_fastapi_route,
    from_application,
    http_error,
    route_table,
)

__all__ = (
    "STATUS_CODES",
    "add_endpoint_to_app",
    "compile_to_fastapi_route",
    "from_application",
    "http_error",
    "route_table",
)
