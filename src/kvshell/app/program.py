"""Program actor.

The single owner of the view model and the input-line editor. Input
batches, resizes and executor messages are turned into actions on one
queue and applied one at a time, interleaved with rendering. Redraw
requests are coalesced through a single invalidation flag, so a burst of
changes costs one repaint rather than one per change.
"""

import asyncio
import logging
from collections.abc import Callable

from rich.cells import cell_len, set_cell_size

from ..cancel import CancelScope, first_completed
from ..messages import (
    CursorClosed,
    CursorOpened,
    Created,
    DatabaseConnected,
    DatabaseDisconnected,
    Dropped,
    ExecutorMessage,
    ResultSet,
    SessionOpened,
)
from ..terminal.events import InputEvent, Key, KeyKind
from ..terminal.writer import RenderWriter
from .config import (
    COMMAND_HANDOFF_TIMEOUT,
    CONNECTED_PROMPT,
    DEFAULT_PROMPT,
    ShellConfig,
)
from .editor import InputLineEditor
from .models import ViewModel

logger = logging.getLogger(__name__)

Action = Callable[[], None]


class Program:
    """Serializes every change to the shell's view state.

    Example:
        program = Program(width=80, height=24, writer=RenderWriter(sys.stdout),
                          cancel=scope.cancel, commands=queue)
        await program.run(scope)
    """

    def __init__(
        self,
        *,
        width: int,
        height: int,
        writer: RenderWriter,
        cancel: Callable[[], None],
        commands: asyncio.Queue[str],
        config: ShellConfig | None = None,
        restore_terminal: Callable[[], None] | None = None,
    ) -> None:
        self._model = ViewModel(width=width, height=height)
        self._editor = InputLineEditor(self._on_submit, prompt=DEFAULT_PROMPT)
        self._writer = writer
        self._cancel = cancel
        self._commands = commands
        self._config = config or ShellConfig()
        self._restore_terminal = restore_terminal
        self._invalidated = asyncio.Event()
        # Single slot: senders wait until the loop takes their action
        self._actions: asyncio.Queue[Action] = asyncio.Queue(maxsize=1)
        self._handoffs: set[asyncio.Task] = set()
        self._reset_done = False
        # Set once the actor loop has exited, normally or not
        self._stopped = asyncio.Event()

    @property
    def model(self) -> ViewModel:
        return self._model

    @property
    def editor(self) -> InputLineEditor:
        return self._editor

    # --- Receivers (called from other units) ---

    async def input(self, events: list[InputEvent]) -> None:
        await self._send(lambda: self._apply_input(events))

    async def resize(self, width: int, height: int) -> None:
        await self._send(lambda: self._apply_resize(width, height))

    async def handle_message(self, message: ExecutorMessage) -> None:
        await self._send(lambda: self._apply_message(message))

    async def quit(self) -> None:
        await self._send(self._cancel)

    async def _send(self, action: Action) -> None:
        """Queue an action for the actor loop.

        Once the loop has stopped the action is dropped, so a sender never
        waits on a queue nobody will drain again.
        """
        if self._stopped.is_set():
            return
        await first_completed(self._actions.put(action), self._stopped.wait())

    # --- Actions (run on the actor loop only) ---

    def _apply_input(self, events: list[InputEvent]) -> None:
        for event in events:
            if isinstance(event, Key):
                self._input_key(event)
            self._editor.update(event, self._model.width)

        self.invalidate()

    def _input_key(self, key: Key) -> None:
        if key.kind == KeyKind.QUIT:
            self._cancel()

    def _apply_resize(self, width: int, height: int) -> None:
        self._model.width = width
        self._model.height = height
        self.invalidate()

    def _apply_message(self, message: ExecutorMessage) -> None:
        if isinstance(message, Exception):
            self._model.add_log_split(str(message))
        elif isinstance(message, str):
            self._model.add_log_split(message)
        elif isinstance(message, DatabaseConnected):
            self._model.add_log(str(message))
            self._editor.prompt = CONNECTED_PROMPT.format(home=message.home)
        elif isinstance(message, DatabaseDisconnected):
            self._model.add_log(str(message))
            self._editor.prompt = DEFAULT_PROMPT
        elif isinstance(message, ResultSet):
            for line in message.lines():
                self._model.add_log(line)
        elif isinstance(message, (SessionOpened, CursorOpened, CursorClosed, Created, Dropped)):
            self._model.add_log(str(message))
        else:
            logger.warning("unhandled message %r", message)

        self.invalidate()

    def invalidate(self) -> None:
        """Mark a redraw as owed. Repeated calls before a render coalesce."""
        self._invalidated.set()

    # --- Command submission ---

    def _on_submit(self, prompt: str, content: str) -> None:
        self._submit_command(content)
        self._model.add_log(prompt + content)

    def _submit_command(self, command: str) -> None:
        task = asyncio.create_task(self._hand_off(command))
        self._handoffs.add(task)
        task.add_done_callback(self._handoffs.discard)

    async def _hand_off(self, command: str) -> None:
        """Pass a command to the executor, giving up if nobody takes it in time."""
        try:
            await asyncio.wait_for(self._commands.put(command), timeout=COMMAND_HANDOFF_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("skipped running command '%s'", command)

    # --- Rendering ---

    def render(self) -> None:
        """Repaint the log and the input line."""
        self._render_logs()
        self._render_input()
        self._writer.flush()

    def _render_logs(self) -> None:
        rows = self._model.height - 1  # bottom row belongs to the input line
        if rows <= 0:
            return

        width = self._model.width
        visible = self._model.messages[-rows:]

        for i, line in enumerate(reversed(visible)):
            if cell_len(line) > width:
                line = set_cell_size(line, width)
            self._writer.set_cursor(rows - 1 - i, 0)
            self._writer.clear_line()
            self._writer.write(line)

    def _render_input(self) -> None:
        row = self._model.height - 1
        prompt = self._editor.prompt

        self._writer.set_cursor(row, 0)
        self._writer.clear_line()
        self._writer.write(prompt + self._editor.content)
        self._writer.set_cursor(row, self._editor.cursor_index + cell_len(prompt))

    def reset(self) -> None:
        """Restore the terminal. Only the first call has any effect."""
        if self._reset_done:
            return
        self._reset_done = True

        self._writer.disable_mouse()
        self._writer.clear_screen()
        self._writer.show_cursor()
        self._writer.set_cursor(0, 0)
        self._writer.flush()

        if self._restore_terminal is not None:
            self._restore_terminal()

        logger.info("terminal reset")

    # --- Main loop ---

    async def run(self, scope: CancelScope) -> None:
        try:
            await self._run(scope)
        finally:
            self._stopped.set()

    async def _run(self, scope: CancelScope) -> None:
        self._writer.clear_screen()
        self._writer.enable_mouse()
        self._writer.flush()

        for command in self._config.startup_commands():
            await self._hand_off(command)

        getter: asyncio.Future | None = None
        try:
            while True:
                if getter is None:
                    getter = asyncio.ensure_future(self._actions.get())

                invalidated = asyncio.ensure_future(self._invalidated.wait())
                cancelled = asyncio.ensure_future(scope.wait())
                try:
                    await asyncio.wait(
                        {getter, invalidated, cancelled},
                        return_when=asyncio.FIRST_COMPLETED,
                    )
                finally:
                    invalidated.cancel()
                    cancelled.cancel()

                if scope.cancelled:
                    return

                if self._invalidated.is_set():
                    self._invalidated.clear()
                    self.render()
                    continue

                if getter.done():
                    action = getter.result()
                    getter = None
                    action()

                    if self._invalidated.is_set():
                        self._invalidated.clear()
                        self.render()
        finally:
            if getter is not None:
                getter.cancel()
