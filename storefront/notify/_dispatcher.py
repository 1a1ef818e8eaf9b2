"""
BackgroundDispatcher — fire-and-forget delivery with its own failure channel.

    dispatcher = BackgroundDispatcher(SmtpNotifier(settings.smtp))
    dispatcher.dispatch(order)        # returns immediately
    ...
    await dispatcher.drain()          # tests, shutdown

A failing notifier is logged and counted; the order it was about is unaffected.
"""

from __future__ import annotations

import asyncio
import logging

from storefront.notify._notifiers import ConfirmationNotifier
from storefront.orders import Order

logger = logging.getLogger(__name__)


class BackgroundDispatcher:
    def __init__(self, notifier: ConfirmationNotifier) -> None:
        self.notifier = notifier
        self.sent = 0
        self.failures = 0
        self._tasks: set[asyncio.Task[None]] = set()

    async def _deliver(self, order: Order) -> None:
        try:
            await self.notifier.send(order)
        except Exception:
            self.failures += 1
            logger.exception("Confirmation for order %s failed", order.id)
        else:
            self.sent += 1

    def dispatch(self, order: Order) -> asyncio.Task[None]:
        """Schedule delivery on the running loop. Must be called from a coroutine."""
        task = asyncio.get_running_loop().create_task(self._deliver(order))
        # The loop only keeps weak references to tasks
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every dispatched delivery to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))


__all__ = ("BackgroundDispatcher",)
