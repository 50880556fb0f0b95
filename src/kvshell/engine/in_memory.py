"""In-memory storage engine backend.

Simple dict-based storage. Tables live for the lifetime of the process,
keyed by home, so reconnecting to the same home sees earlier writes.
"""

from dataclasses import dataclass, field

from .base import Connection, Cursor, Session
from .errors import EngineError
from .models import Row, TableSchema, table_name


@dataclass
class _Table:
    schema: TableSchema
    rows: dict[Row, Row] = field(default_factory=dict)


_HOMES: dict[str, dict[str, _Table]] = {}


class InMemoryCursor(Cursor):
    def __init__(self, uri: str, table: _Table) -> None:
        super().__init__(uri, table.schema)
        self._table = table

    async def _fetch(self, key: Row) -> Row | None:
        return self._table.rows.get(key)

    async def _put(self, key: Row, value: Row) -> None:
        self._table.rows[key] = value

    async def _delete(self, key: Row) -> None:
        del self._table.rows[key]

    async def _scan(self) -> list[tuple[Row, Row]]:
        return list(self._table.rows.items())


class InMemorySession(Session):
    def __init__(self, connection: "InMemoryConnection") -> None:
        super().__init__()
        self._connection = connection

    @property
    def _tables(self) -> dict[str, _Table]:
        return self._connection.tables

    async def create(self, uri: str, config: str = "") -> None:
        self._check_open()
        name = table_name(uri)
        if name in self._tables:
            raise EngineError(f"table '{uri}' already exists")
        self._tables[name] = _Table(schema=TableSchema.from_config(name, config))

    async def drop(self, uri: str, config: str = "") -> None:
        self._check_open()
        name = table_name(uri)
        if name not in self._tables:
            raise EngineError(f"table '{uri}' does not exist")
        if self._connection._busy(uri):
            raise EngineError(f"table '{uri}' has open cursors")
        del self._tables[name]

    async def _open_cursor(self, uri: str, config: str) -> Cursor:
        name = table_name(uri)
        table = self._tables.get(name)
        if table is None:
            raise EngineError(f"table '{uri}' does not exist")
        return InMemoryCursor(uri, table)


class InMemoryConnection(Connection):
    """Connection to a process-local home."""

    def __init__(self, home: str, config: str = "") -> None:
        super().__init__(home)
        self.tables = _HOMES.setdefault(home, {})

    async def _open_session(self, config: str) -> Session:
        return InMemorySession(self)

    @property
    def backend_type(self) -> str:
        return "memory"


def forget_homes() -> None:
    """Discard every in-memory home (used between test runs)."""
    _HOMES.clear()
