"""Process supervision for the shell's concurrent units.

Hides how the reader, resize watcher, command executor and program actor
are started, linked and stopped.

Shutdown runs in a fixed order:
1. the application scope is cancelled (quit key, `quit` command, signal or
   a crashed unit)
2. the Canceler cancels the worker scope (reader, resize watcher, executor)
3. the Waiter sees the workers drain and cancels the program's scope
4. the terminal is restored once everything has returned

The reader's blocking read is never awaited, so it cannot hold up step 3.
"""

import asyncio
import logging
import signal
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TextIO

from .app.config import COMMAND_QUEUE_SIZE, ShellConfig
from .app.program import Program
from .cancel import CancelScope, WaitGroup, first_completed
from .executor import ConnectionHandler
from .terminal import rawmode
from .terminal.reader import RawReader
from .terminal.resize import ResizeWatcher
from .terminal.writer import RenderWriter

logger = logging.getLogger(__name__)


class Runner(Protocol):
    """A supervised unit of work that returns when its scope is cancelled."""

    async def run(self, scope: CancelScope) -> None: ...


class UnitCrashed(Exception):
    """An unexpected exception escaped a supervised unit."""

    def __init__(self, unit: str, cause: BaseException) -> None:
        super().__init__(f"panic: {unit}: {cause}")
        self.unit = unit
        self.cause = cause


@dataclass
class Process:
    """A runner plus the wait groups that track its lifetime."""

    runner: Runner
    wait_groups: list[WaitGroup] = field(default_factory=list)

    @property
    def name(self) -> str:
        return type(self.runner).__name__


class ProcessGroup:
    """Runs processes concurrently and keeps the first failure.

    A crashing unit cancels ``scope``; every other scope in the session is
    cancelled from there, directly or through the Canceler.
    """

    def __init__(self) -> None:
        self.scope = CancelScope()
        self._tasks: list[asyncio.Task] = []
        self._error: UnitCrashed | None = None

    def go(self, scope: CancelScope, *processes: Process) -> None:
        """Start each process in ``scope``."""
        for process in processes:
            for wg in process.wait_groups:
                wg.add(1)
            task = asyncio.create_task(self._run(scope, process), name=process.name)
            self._tasks.append(task)

    async def _run(self, scope: CancelScope, process: Process) -> None:
        try:
            await process.runner.run(scope)
        except Exception as e:
            logger.exception("unit %s crashed", process.name)
            if self._error is None:
                self._error = UnitCrashed(process.name, e)
            self.scope.cancel()
        finally:
            for wg in process.wait_groups:
                wg.done()

    async def wait(self) -> UnitCrashed | None:
        """Wait for every started process; return the first crash, if any."""
        await asyncio.gather(*self._tasks)
        return self._error


def go_cancel_group(
    group: ProcessGroup, parent: CancelScope | None, *processes: Process
) -> Callable[[], None]:
    """Start processes in a fresh scope and return the function cancelling it."""
    scope = parent.child() if parent is not None else CancelScope()
    group.go(scope, *processes)
    return scope.cancel


class Waiter:
    """Cancels its targets once every unit in a wait group has finished."""

    def __init__(self, wait_group: WaitGroup, cancels: Iterable[Callable[[], None]]) -> None:
        self._wait_group = wait_group
        self._cancels = list(cancels)

    async def run(self, scope: CancelScope) -> None:
        await self._wait_group.wait()
        for cancel in self._cancels:
            cancel()


class Canceler:
    """Cancels its targets on a termination signal or on scope cancellation."""

    SIGNALS = (signal.SIGTERM, signal.SIGINT, signal.SIGQUIT)

    def __init__(self, cancels: Iterable[Callable[[], None]]) -> None:
        self._cancels = list(cancels)

    async def run(self, scope: CancelScope) -> None:
        loop = asyncio.get_running_loop()
        received = asyncio.Event()
        installed = []

        for sig in self.SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig, received)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.warning("cannot watch signal %s", sig.name)
                continue
            installed.append(sig)

        try:
            await first_completed(scope.wait(), received.wait())
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

        if not received.is_set():
            logger.info("application quitting, shutting down...")

        for cancel in self._cancels:
            cancel()

    @staticmethod
    def _on_signal(sig: signal.Signals, received: asyncio.Event) -> None:
        logger.info("received signal '%s', shutting down...", sig.name)
        received.set()


async def supervise(
    group: ProcessGroup,
    app_scope: CancelScope,
    program: Runner,
    workers: Sequence[Runner],
) -> UnitCrashed | None:
    """Run the program and its workers until the application scope ends.

    Args:
        group: Group every unit runs in
        app_scope: Scope whose cancellation starts shutdown; must descend
            from ``group.scope``
        program: The actor, stopped only after every worker has returned
        workers: Units feeding the program (reader, resize watcher, executor)

    Returns:
        The first unit crash, or None on a clean shutdown
    """
    drained = WaitGroup()
    cancel_workers = go_cancel_group(
        group, None, *(Process(w, wait_groups=[drained]) for w in workers)
    )

    program_scope = CancelScope()
    group.go(
        program_scope,
        Process(program),
        Process(Waiter(drained, [program_scope.cancel])),
    )

    group.go(app_scope, Process(Canceler([cancel_workers])))

    return await group.wait()


async def run_shell(
    config: ShellConfig,
    *,
    fd: int,
    out: TextIO,
    width: int,
    height: int,
    restore_terminal: Callable[[], None] | None = None,
) -> UnitCrashed | None:
    """Run an interactive session on an already-raw terminal.

    The terminal is reset exactly once on the way out, whatever ended the
    session.
    """
    group = ProcessGroup()
    app_scope = group.scope.child()
    commands: asyncio.Queue[str] = asyncio.Queue(maxsize=COMMAND_QUEUE_SIZE)

    program = Program(
        width=width,
        height=height,
        writer=RenderWriter(out),
        cancel=app_scope.cancel,
        commands=commands,
        config=config,
        restore_terminal=restore_terminal,
    )

    try:
        workers = [
            ResizeWatcher(lambda: rawmode.get_size(fd), program),
            RawReader.from_fd(fd, program),
            ConnectionHandler(commands, program, app_scope.cancel, backend=config.backend),
        ]
        return await supervise(group, app_scope, program, workers)
    finally:
        program.reset()
