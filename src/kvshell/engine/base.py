"""Abstract base classes for storage engine backends.

This module defines the connection / session / cursor interface the
command executor drives. The abstraction hides:
- Where rows live (process memory, SQLite file)
- How keys are ordered and iterated
- Handle lifecycle (open, close, busy tables)

Cursor positioning and iteration are implemented here once; backends only
supply row storage primitives.
"""

import bisect
from abc import ABC, abstractmethod
from collections.abc import Callable

from .errors import EngineError
from .models import Row, TableSchema


class Cursor(ABC):
    """Cursor over one table, ordered by key.

    Typical use::

        cursor.set_key("a")
        cursor.set_value("1")
        await cursor.insert()

        await cursor.reset()
        while await cursor.next():
            print(cursor.get_key(), cursor.get_value())
    """

    def __init__(self, uri: str, schema: TableSchema) -> None:
        self.uri = uri
        self._schema = schema
        self._key: Row | None = None
        self._value: Row | None = None
        self._position: tuple[Row, Row] | None = None
        self._snapshot: list[tuple[Row, Row]] | None = None
        self._snapshot_index = 0
        self._closed = False
        # Detaches the cursor from the session that opened it
        self._on_close: Callable[[], None] | None = None

    # --- Storage primitives ---

    @abstractmethod
    async def _fetch(self, key: Row) -> Row | None:
        """Return the value stored under ``key``, or None."""

    @abstractmethod
    async def _put(self, key: Row, value: Row) -> None:
        """Insert or overwrite a row."""

    @abstractmethod
    async def _delete(self, key: Row) -> None:
        """Delete an existing row."""

    @abstractmethod
    async def _scan(self) -> list[tuple[Row, Row]]:
        """Return every row, in any order."""

    async def _release(self) -> None:
        """Free backend resources held by this cursor."""

    # --- Public interface ---

    @property
    def closed(self) -> bool:
        return self._closed

    def key_count(self) -> int:
        return self._schema.key_count

    def value_count(self) -> int:
        return self._schema.value_count

    def set_key(self, *parts: str) -> None:
        self._check_open()
        self._key = self._schema.coerce_key(parts)

    def set_value(self, *parts: str) -> None:
        self._check_open()
        self._value = self._schema.coerce_value(parts)

    def get_key(self) -> Row:
        return self._positioned()[0]

    def get_value(self) -> Row:
        return self._positioned()[1]

    async def insert(self) -> None:
        """Store the pending key and value, overwriting any existing row."""
        key = self._pending_key()
        if self._value is None:
            raise EngineError("no value set")

        await self._put(key, self._value)
        self._clear()

    async def remove(self) -> None:
        key = self._pending_key()
        if await self._fetch(key) is None:
            raise EngineError("item not found")

        await self._delete(key)
        self._clear()

    async def search(self) -> None:
        """Position the cursor on the row matching the pending key exactly."""
        key = self._pending_key()
        value = await self._fetch(key)
        if value is None:
            raise EngineError("item not found")

        self._snapshot = None
        self._position = (key, value)

    async def next(self) -> bool:
        """Move to the next row in key order.

        Starts after the current position, or at the first row when the
        cursor is not positioned. Returns False and resets the cursor once
        the rows are exhausted.
        """
        self._check_open()

        if self._snapshot is None:
            self._snapshot = sorted(await self._scan(), key=lambda row: row[0])
            self._snapshot_index = 0
            if self._position is not None:
                keys = [row[0] for row in self._snapshot]
                self._snapshot_index = bisect.bisect_right(keys, self._position[0])

        if self._snapshot_index >= len(self._snapshot):
            self._clear()
            return False

        self._position = self._snapshot[self._snapshot_index]
        self._snapshot_index += 1
        return True

    async def reset(self) -> None:
        self._check_open()
        self._clear()

    async def close(self) -> None:
        if self._closed:
            return
        self._clear()
        self._closed = True
        if self._on_close is not None:
            self._on_close()
        await self._release()

    # --- Helpers ---

    def _check_open(self) -> None:
        if self._closed:
            raise EngineError("cursor is closed")

    def _pending_key(self) -> Row:
        self._check_open()
        if self._key is None:
            raise EngineError("no key set")
        return self._key

    def _positioned(self) -> tuple[Row, Row]:
        self._check_open()
        if self._position is None:
            raise EngineError("cursor not positioned")
        return self._position

    def _clear(self) -> None:
        self._key = None
        self._value = None
        self._position = None
        self._snapshot = None
        self._snapshot_index = 0


class Session(ABC):
    """A unit of work against one connection; owns the cursors it opens."""

    def __init__(self) -> None:
        self._cursors: list[Cursor] = []
        self._closed = False
        self._on_close: Callable[[], None] | None = None

    @abstractmethod
    async def create(self, uri: str, config: str = "") -> None:
        """Create a table.

        Raises:
            EngineError: If the table exists or the schema is invalid
        """

    @abstractmethod
    async def drop(self, uri: str, config: str = "") -> None:
        """Drop a table.

        Raises:
            EngineError: If the table is missing or has open cursors
        """

    @abstractmethod
    async def _open_cursor(self, uri: str, config: str) -> Cursor:
        """Create a cursor on an existing table."""

    async def open_cursor(self, uri: str, config: str = "") -> Cursor:
        self._check_open()
        cursor = await self._open_cursor(uri, config)
        self._cursors.append(cursor)
        cursor._on_close = lambda: self._cursors.remove(cursor)
        return cursor

    def _busy(self, uri: str) -> bool:
        return any(c.uri == uri for c in self._cursors)

    async def close(self, config: str = "") -> None:
        if self._closed:
            return
        for cursor in list(self._cursors):
            await cursor.close()
        self._closed = True
        if self._on_close is not None:
            self._on_close()

    def _check_open(self) -> None:
        if self._closed:
            raise EngineError("session is closed")


class Connection(ABC):
    """An open database home."""

    def __init__(self, home: str) -> None:
        self.home = home
        self._sessions: list[Session] = []
        self._closed = False

    @abstractmethod
    async def _open_session(self, config: str) -> Session:
        """Create a session on this connection."""

    async def _release(self) -> None:
        """Free backend resources after every session is closed."""

    async def open_session(self, config: str = "") -> Session:
        if self._closed:
            raise EngineError("connection is closed")
        session = await self._open_session(config)
        self._sessions.append(session)
        session._on_close = lambda: self._sessions.remove(session)
        return session

    def _busy(self, uri: str) -> bool:
        return any(session._busy(uri) for session in self._sessions)

    async def close(self, config: str = "") -> None:
        if self._closed:
            return
        for session in list(self._sessions):
            await session.close()
        self._closed = True
        await self._release()

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
