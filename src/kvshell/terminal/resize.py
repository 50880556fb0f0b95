"""Resize watcher.

Polls the terminal size on a fixed interval and reports only changes.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from ..cancel import CancelScope

logger = logging.getLogger(__name__)

# Resize polling interval (seconds)
RESIZE_POLL_INTERVAL = 0.1


class ResizeReceiver(Protocol):
    async def resize(self, width: int, height: int) -> None: ...


class ResizeWatcher:
    """Reports (width, height) to the receiver whenever it changes."""

    def __init__(
        self,
        get_size: Callable[[], tuple[int, int]],
        receiver: ResizeReceiver,
        interval: float = RESIZE_POLL_INTERVAL,
    ) -> None:
        self._get_size = get_size
        self._receiver = receiver
        self._interval = interval

    async def run(self, scope: CancelScope) -> None:
        width = height = 0

        while True:
            try:
                await asyncio.wait_for(scope.wait(), timeout=self._interval)
                return
            except asyncio.TimeoutError:
                pass

            try:
                w, h = self._get_size()
            except OSError as e:
                logger.error("get term size: %s", e)
                continue

            if (w, h) == (width, height):
                continue

            await self._receiver.resize(w, h)
            width, height = w, h
