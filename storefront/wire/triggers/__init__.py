"""
Triggers — describe how endpoints are exposed (e.g., HTTP routes).

    from storefront.wire.triggers.http import HTTPRouteTrigger

    http = HTTPRouteTrigger("GET", "/api/reviews", auth="optional")
"""

from storefront.wire.triggers import http


__all__ = ("http",)
