"""Cancellation primitives shared by every concurrent unit.

- CancelScope: one-way, idempotent cancellation broadcast with child scopes
- WaitGroup: counts running units so shutdown can wait for them to drain
"""

import asyncio
from collections.abc import Awaitable
from typing import Any, TypeVar

T = TypeVar("T")


class CancelScope:
    """Hierarchical cancellation scope.

    Cancelling a scope cancels all of its descendants. Cancelling an
    already-cancelled scope is a no-op.
    """

    def __init__(self, parent: "CancelScope | None" = None) -> None:
        self._event = asyncio.Event()
        self._children: list[CancelScope] = []
        if parent is not None:
            parent._adopt(self)

    def _adopt(self, child: "CancelScope") -> None:
        self._children.append(child)
        if self.cancelled:
            child.cancel()

    def child(self) -> "CancelScope":
        """Create a scope that is cancelled together with this one."""
        return CancelScope(parent=self)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        if self._event.is_set():
            return
        self._event.set()
        for child in self._children:
            child.cancel()

    async def wait(self) -> None:
        """Suspend until the scope is cancelled."""
        await self._event.wait()


class WaitGroup:
    """Counter of running units; ``wait`` returns once it drops to zero."""

    def __init__(self) -> None:
        self._count = 0
        self._idle = asyncio.Event()
        self._idle.set()

    def add(self, n: int = 1) -> None:
        self._count += n
        if self._count > 0:
            self._idle.clear()

    def done(self) -> None:
        self._count -= 1
        if self._count < 0:
            raise ValueError("negative WaitGroup counter")
        if self._count == 0:
            self._idle.set()

    async def wait(self) -> None:
        await self._idle.wait()


async def first_completed(*aws: Awaitable[Any]) -> set[asyncio.Future]:
    """Wait until the first awaitable finishes and cancel the others.

    Returns:
        The futures that completed
    """
    futures = [asyncio.ensure_future(aw) for aw in aws]
    try:
        done, _ = await asyncio.wait(futures, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for future in futures:
            if not future.done():
                future.cancel()
    return done


async def unless_cancelled(scope: CancelScope, aw: Awaitable[T]) -> tuple[bool, T | None]:
    """Await ``aw`` unless ``scope`` is cancelled first.

    Returns:
        ``(True, result)`` when ``aw`` finished, ``(False, None)`` when the
        scope was cancelled first. Cancellation wins a tie.
    """
    work = asyncio.ensure_future(aw)
    await first_completed(work, scope.wait())
    if scope.cancelled or not work.done() or work.cancelled():
        return False, None
    return True, work.result()
