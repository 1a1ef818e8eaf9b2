"""
Wire — expose storefront handlers via triggers and codecs.

    from storefront.wire import endpoint, Application
    from storefront.wire.triggers.http import HTTPRouteTrigger
    from storefront.wire.codecs.rrc import RequestResponseCodec

    async def add_to_cart(command, caller):   # -> Result[CartView, ShopError]
        ...

    endp = endpoint(add_to_cart).expose(
        HTTPRouteTrigger("POST", "/api/cart"),
        RequestResponseCodec(AddToCartIn, CartOut),
    )
    app = Application().mount(endp)
"""

from storefront.wire._endpoint import (
    Endpoint,
    endpoint,
)
from storefront.wire._app import Application, application
from storefront.wire._types import (
    Trigger,
    Codec,
    Exposure,
    Handler,
)

# Common codecs and triggers
from storefront.wire.codecs.rrc import RequestResponseCodec
from storefront.wire.triggers.http import (
    HTTPRouteTrigger,
    Method,
    Path,
    Header,
    Headers,
    Auth,
)

# Subpackages
from storefront.wire import codecs, triggers, contrib

__all__ = (
    # Core API
    "Endpoint",
    "endpoint",
    "Application",
    "application",
    "Trigger",
    "Codec",
    "Exposure",
    "Handler",
    # Built-ins
    "RequestResponseCodec",
    "HTTPRouteTrigger",
    "Method",
    "Path",
    "Header",
    "Headers",
    "Auth",
    # Subpackages
    "codecs",
    "triggers",
    "contrib",
)
