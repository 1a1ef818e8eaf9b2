"""
Lift — Helpers for lifting storefront calls into LazyCoroResult.

Re-exports catching_async from combinators.lift with storefront-specific additions:
infrastructure exceptions become DEPENDENCY ShopErrors and are logged
with full detail at the point they are caught.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Awaitable

from kungfu import Error, LazyCoroResult, Ok, Result

from combinators.lift import catching_async

from storefront._errors import Errors, ShopError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Storefront-specific helpers
# ═══════════════════════════════════════════════════════════════════════════════


def dependency_error(operation: str) -> Callable[[Exception], ShopError]:
    """
    Build an on_error handler for catching_async.

    The exception is logged here with traceback; callers only see the generic error.
    """
    def _on_error(exc: Exception) -> ShopError:
        logger.error("%s failed", operation, exc_info=exc)
        return Errors.dependency(operation, exc)
    return _on_error


def guarded[T](
    operation: str,
    fn: Callable[[], Awaitable[T]],
) -> LazyCoroResult[T, ShopError]:
    """
    catching_async with the storefront error mapping.

    Example:
        product = await guarded("catalog.get_product", lambda: catalog.get_product(42))
    """
    return catching_async(fn, on_error=dependency_error(operation))


def guarded_result[T](
    operation: str,
    fn: Callable[[], Awaitable[Result[T, ShopError]]],
) -> LazyCoroResult[T, ShopError]:
    """guarded() for calls that already return a Result: flattens the two error channels."""
    async def _run() -> Result[T, ShopError]:
        match await guarded(operation, fn):
            case Ok(inner):
                return inner
            case Error(err):
                return Error(err)
    return LazyCoroResult(_run)


__all__ = (
    "catching_async",
    "dependency_error",
    "guarded",
    "guarded_result",
)
