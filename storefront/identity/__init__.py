"""
Identity — who is calling.

    from storefront import identity as ID

    verifier = ID.TokenVerifier(secret=settings.jwt_secret, ttl=settings.token_ttl)
    caller = verifier.verify(request.headers.get("Authorization"))
    if caller is None:
        ...  # anonymous
"""

from storefront.identity._types import Identity, Role
from storefront.identity._token import TokenVerifier, encode, decode

__all__ = (
    "Identity",
    "Role",
    "TokenVerifier",
    "encode",
    "decode",
)
