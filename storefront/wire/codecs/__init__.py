"""
Codecs — convert transport payloads to domain commands and back.

    from storefront.wire.codecs import RequestResponseCodec

    # class AddToCart(BaseModel): implements to_domain()
    # class CartOut(BaseModel): implements from_domain()
    # codec = RequestResponseCodec(AddToCart, CartOut)
"""

from storefront.wire.codecs.rrc import (
    RequestResponseCodec,
    ToDomain,
    FromDomain,
)

__all__ = (
    "RequestResponseCodec",
    "ToDomain",
    "FromDomain",
)
