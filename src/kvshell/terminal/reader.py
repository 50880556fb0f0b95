"""Raw reader.

Reads the terminal, decodes each chunk and forwards event batches to a
receiver. The read itself blocks and cannot be interrupted, so it runs on a
daemon thread that is never joined: on shutdown the thread is abandoned,
either still blocked in the read or blocked handing over a batch nobody
will take.

The handoff is a rendezvous. The poller does not read again until the
receiver has accepted the previous batch, so no input is read ahead of the
shell. A chunk the decoder chokes on is handed over as the exception
itself and raised by the reader unit, which ends the session.
"""

import asyncio
import concurrent.futures
import functools
import logging
import os
import threading
from collections.abc import Callable
from typing import Protocol

from ..cancel import CancelScope, unless_cancelled
from .decoder import decode
from .events import InputEvent

logger = logging.getLogger(__name__)

# Bytes requested from the terminal per read
READ_CHUNK_SIZE = 128

# A decoded batch, or the decode failure, paired with the future the
# consumer resolves once it is done with it
Handoff = tuple[list[InputEvent] | Exception, asyncio.Future]


class InputReceiver(Protocol):
    async def input(self, events: list[InputEvent]) -> None: ...


class RawReader:
    """Forwards decoded input batches until its scope is cancelled."""

    def __init__(self, read: Callable[[], bytes], receiver: InputReceiver) -> None:
        self._read = read
        self._receiver = receiver

    @classmethod
    def from_fd(cls, fd: int, receiver: InputReceiver) -> "RawReader":
        return cls(functools.partial(os.read, fd, READ_CHUNK_SIZE), receiver)

    async def run(self, scope: CancelScope) -> None:
        loop = asyncio.get_running_loop()
        handoffs: asyncio.Queue[Handoff] = asyncio.Queue(maxsize=1)

        poller = threading.Thread(
            target=self._poll,
            args=(loop, handoffs),
            name="kvshell-poller",
            daemon=True,
        )
        poller.start()

        while True:
            ok, item = await unless_cancelled(scope, handoffs.get())
            if not ok:
                return

            payload, taken = item
            try:
                if isinstance(payload, Exception):
                    raise payload
                await self._receiver.input(payload)
            finally:
                if not taken.done():
                    taken.set_result(None)

    @staticmethod
    async def _hand_over(handoffs: asyncio.Queue, payload: list[InputEvent] | Exception) -> None:
        """Return only once the consumer has finished with the payload."""
        taken = asyncio.get_running_loop().create_future()
        await handoffs.put((payload, taken))
        await taken

    def _poll(self, loop: asyncio.AbstractEventLoop, handoffs: asyncio.Queue) -> None:
        while True:
            try:
                data = self._read()
            except OSError as e:
                logger.error("poll error: reader: %s", e)
                continue

            if not data:
                logger.info("input closed, poller exiting")
                return

            try:
                payload = decode(data)
            except Exception as e:
                logger.exception("poll error: decode")
                payload = e

            try:
                handoff = asyncio.run_coroutine_threadsafe(self._hand_over(handoffs, payload), loop)
                handoff.result()
            except (RuntimeError, concurrent.futures.CancelledError):
                # Event loop closed or shutting down
                return

            if isinstance(payload, Exception):
                return
