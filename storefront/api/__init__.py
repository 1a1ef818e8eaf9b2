"""
API — the storefront over HTTP.

    from storefront.api import create_app
    from storefront.shop import Shop

    app = create_app(await Shop.open(Settings.from_env()))

Bearer authentication on every route except the public review reads.
Errors come back as {"detail": {"code": ..., "message": ...}} with
400/401/403/404/409/503.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import fastapi

from storefront import __version__
from storefront.api._routes import build_application
from storefront.shop import Shop
from storefront.wire.contrib import fastapi as wire_fastapi


def create_app(shop: Shop) -> fastapi.FastAPI:
    @asynccontextmanager
    async def lifespan(_: fastapi.FastAPI) -> AsyncIterator[None]:
        yield
        # Let pending confirmation emails finish
        await shop.close()

    app = wire_fastapi.from_application(
        build_application(shop),
        shop.verifier,
        title="storefront",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.shop = shop
    return app


__all__ = ("create_app", "build_application")
