"""Command executor.

Consumes submitted command lines one at a time, drives the storage engine
and reports outcomes to the program as messages. Failures are reported the
same way and never stop the executor.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Protocol

from ..cancel import CancelScope, unless_cancelled
from ..engine import Connection, Cursor, EngineError, Session, open_connection
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
from .commands import USAGE, CommandError, split_columns, split_command, split_target

logger = logging.getLogger(__name__)


class MessageHandler(Protocol):
    async def handle_message(self, message: ExecutorMessage) -> None: ...


@contextmanager
def _operation(name: str) -> Iterator[None]:
    """Re-raise engine failures as command errors prefixed with ``name``."""
    try:
        yield
    except EngineError as e:
        raise CommandError(f"{name}: {e}") from e


@dataclass
class _State:
    connection: Connection | None = None
    session: Session | None = None
    cursor: Cursor | None = None


class ConnectionHandler:
    """Runs commands against at most one connection, session and cursor."""

    def __init__(
        self,
        commands: asyncio.Queue[str],
        handler: MessageHandler,
        cancel: Callable[[], None],
        backend: str = "sqlite",
    ) -> None:
        self._commands = commands
        self._handler = handler
        self._cancel = cancel
        self._backend = backend
        self._state = _State()
        self._table: dict[str, Callable[[str], Awaitable[None]]] = {
            "open": self._open,
            "close": self._close,
            "open-session": self._open_session,
            "close-session": self._close_session,
            "create": self._create,
            "drop": self._drop,
            "open-cursor": self._open_cursor,
            "close-cursor": self._close_cursor,
            "insert": self._insert,
            "remove": self._remove,
            "reset": self._reset,
            "set-key": self._set_key,
            "set-value": self._set_value,
            "search": self._search,
            "search-all-next": self._search_all_next,
            "help": self._help,
            "quit": self._quit,
        }

    async def run(self, scope: CancelScope) -> None:
        while True:
            ok, line = await unless_cancelled(scope, self._commands.get())
            if not ok:
                break
            try:
                await self.handle(line)
            except CommandError as e:
                logger.info("command '%s' failed: %s", line, e)
                await self._handler.handle_message(e)

        try:
            await self.close()
        except CommandError as e:
            await self._handler.handle_message(e)

    async def handle(self, line: str) -> None:
        """Run one command line.

        Raises:
            CommandError: If the command is unknown, malformed or fails
        """
        name, args = split_command(line)
        if not name:
            return

        command = self._table.get(name)
        if command is None:
            raise CommandError(f"'{name}' is not a valid command")

        logger.info("running command '%s'", line)
        await command(args)

    async def close(self) -> None:
        """Close any open connection (and with it, session and cursor)."""
        connection = self._state.connection
        self._state = _State()
        if connection is not None:
            with _operation("close conn"):
                await connection.close()

    async def _emit(self, message: ExecutorMessage) -> None:
        await self._handler.handle_message(message)

    # --- Preconditions ---

    def _need_connection(self) -> Connection:
        if self._state.connection is None:
            raise CommandError("not connected to a database")
        return self._state.connection

    def _need_session(self) -> Session:
        if self._state.session is None:
            raise CommandError("no active session")
        return self._state.session

    def _need_cursor(self) -> Cursor:
        if self._state.cursor is None:
            raise CommandError("no active cursor")
        return self._state.cursor

    # --- Connection and session ---

    async def _open(self, args: str) -> None:
        if self._state.connection is not None:
            raise CommandError("already connected")

        home, config = split_target(args, "open")
        with _operation("open"):
            self._state.connection = await open_connection(self._backend, home, config)

        await self._emit(DatabaseConnected(home=home))

    async def _close(self, args: str) -> None:
        connection = self._need_connection()
        await self.close()
        await self._emit(DatabaseDisconnected(home=connection.home))

    async def _open_session(self, args: str) -> None:
        connection = self._need_connection()
        if self._state.session is not None:
            raise CommandError("session already open")

        with _operation("open session"):
            self._state.session = await connection.open_session(args)

        await self._emit(SessionOpened())

    async def _close_session(self, args: str) -> None:
        session = self._need_session()
        self._state.session = None
        self._state.cursor = None
        with _operation("close"):
            await session.close(args)

        await self._emit("session closed")

    # --- Tables ---

    async def _create(self, args: str) -> None:
        session = self._need_session()
        uri, config = split_target(args, "create")
        with _operation("create"):
            await session.create(uri, config)

        await self._emit(Created(name=uri))

    async def _drop(self, args: str) -> None:
        session = self._need_session()
        uri, config = split_target(args, "drop")
        with _operation("drop"):
            await session.drop(uri, config)

        await self._emit(Dropped(name=uri))

    # --- Cursor ---

    async def _open_cursor(self, args: str) -> None:
        session = self._need_session()
        if self._state.cursor is not None:
            raise CommandError("cursor already open")

        uri, config = split_target(args, "open-cursor")
        with _operation("open cursor"):
            self._state.cursor = await session.open_cursor(uri, config)

        await self._emit(CursorOpened(uri=uri))

    async def _close_cursor(self, args: str) -> None:
        cursor = self._need_cursor()
        self._state.cursor = None
        with _operation("close cursor"):
            await cursor.close()

        await self._emit(CursorClosed())

    async def _insert(self, args: str) -> None:
        cursor = self._need_cursor()
        keys, _, values = args.partition(" ")
        if not keys or not values:
            raise CommandError(f"parse: {USAGE['insert']}")

        with _operation("set key"):
            cursor.set_key(*split_columns(keys))
        with _operation("set value"):
            cursor.set_value(*split_columns(values.strip()))
        with _operation("insert"):
            await cursor.insert()

    async def _remove(self, args: str) -> None:
        cursor = self._need_cursor()
        with _operation("set key"):
            cursor.set_key(*split_columns(args))
        with _operation("remove"):
            await cursor.remove()

    async def _reset(self, args: str) -> None:
        cursor = self._need_cursor()
        with _operation("reset"):
            await cursor.reset()

    async def _set_key(self, args: str) -> None:
        cursor = self._need_cursor()
        with _operation("set key"):
            cursor.set_key(*split_columns(args))

    async def _set_value(self, args: str) -> None:
        cursor = self._need_cursor()
        with _operation("set value"):
            cursor.set_value(*split_columns(args))

    async def _search(self, args: str) -> None:
        cursor = self._need_cursor()

        if args:
            with _operation("reset"):
                await cursor.reset()
            with _operation("set key"):
                cursor.set_key(*split_columns(args))

        with _operation("search"):
            await cursor.search()

        await self._emit(ResultSet(rows=[_row(cursor)]))

    async def _search_all_next(self, args: str) -> None:
        cursor = self._need_cursor()

        rows = []
        with _operation("iteration"):
            while await cursor.next():
                rows.append(_row(cursor))

        await self._emit(ResultSet(rows=rows))

    # --- Misc ---

    async def _help(self, args: str) -> None:
        for usage in USAGE.values():
            await self._emit(usage)

    async def _quit(self, args: str) -> None:
        self._cancel()


def _row(cursor: Cursor) -> list[str]:
    """Display strings for the positioned row: keys first, then values."""
    return [str(part) for part in cursor.get_key() + cursor.get_value()]
