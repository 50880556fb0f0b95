"""SQLite storage engine backend.

Provides persistent tables in ``<home>/kvshell.db`` using aiosqlite for
async access. Each engine table is one SQL table of JSON-encoded key and
value rows; a catalog table records every table's schema.
"""

import json
from pathlib import Path

import aiosqlite

from .base import Connection, Cursor, Session
from .errors import EngineError
from .models import Row, TableSchema, parse_config, table_name

DATABASE_FILE = "kvshell.db"


def _data_table(name: str) -> str:
    # Names are restricted to [A-Za-z0-9_.-] by TableSchema
    return f'"data:{name}"'


class SQLiteCursor(Cursor):
    def __init__(self, uri: str, schema: TableSchema, db: aiosqlite.Connection) -> None:
        super().__init__(uri, schema)
        self._db = db
        self._table = _data_table(schema.name)

    async def _fetch(self, key: Row) -> Row | None:
        async with self._db.execute(
            f"SELECT value FROM {self._table} WHERE key = ?",
            (json.dumps(key),)
        ) as cursor:
            row = await cursor.fetchone()
        return tuple(json.loads(row[0])) if row else None

    async def _put(self, key: Row, value: Row) -> None:
        await self._db.execute(
            f"""
            INSERT INTO {self._table} (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (json.dumps(key), json.dumps(value))
        )
        await self._db.commit()

    async def _delete(self, key: Row) -> None:
        await self._db.execute(
            f"DELETE FROM {self._table} WHERE key = ?",
            (json.dumps(key),)
        )
        await self._db.commit()

    async def _scan(self) -> list[tuple[Row, Row]]:
        async with self._db.execute(f"SELECT key, value FROM {self._table}") as cursor:
            rows = await cursor.fetchall()
        return [(tuple(json.loads(k)), tuple(json.loads(v))) for k, v in rows]


class SQLiteSession(Session):
    def __init__(self, connection: "SQLiteConnection") -> None:
        super().__init__()
        self._connection = connection

    async def _schema(self, name: str) -> TableSchema | None:
        async with self._connection.db.execute(
            "SELECT key_format, value_format FROM tables WHERE name = ?",
            (name,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return TableSchema(name=name, key_format=row[0], value_format=row[1])

    async def create(self, uri: str, config: str = "") -> None:
        self._check_open()
        name = table_name(uri)
        schema = TableSchema.from_config(name, config)
        if await self._schema(name) is not None:
            raise EngineError(f"table '{uri}' already exists")

        db = self._connection.db
        await db.execute(
            "INSERT INTO tables (name, key_format, value_format) VALUES (?, ?, ?)",
            (schema.name, schema.key_format, schema.value_format)
        )
        await db.execute(f"""
            CREATE TABLE {_data_table(name)} (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        await db.commit()

    async def drop(self, uri: str, config: str = "") -> None:
        self._check_open()
        name = table_name(uri)
        if await self._schema(name) is None:
            raise EngineError(f"table '{uri}' does not exist")
        if self._connection._busy(uri):
            raise EngineError(f"table '{uri}' has open cursors")

        db = self._connection.db
        await db.execute("DELETE FROM tables WHERE name = ?", (name,))
        await db.execute(f"DROP TABLE {_data_table(name)}")
        await db.commit()

    async def _open_cursor(self, uri: str, config: str) -> Cursor:
        schema = await self._schema(table_name(uri))
        if schema is None:
            raise EngineError(f"table '{uri}' does not exist")
        return SQLiteCursor(uri, schema, self._connection.db)


class SQLiteConnection(Connection):
    """Connection to a home directory holding a SQLite database file."""

    def __init__(self, home: str, db: aiosqlite.Connection) -> None:
        super().__init__(home)
        self.db = db

    @classmethod
    async def open(cls, home: str, config: str = "") -> "SQLiteConnection":
        """Open (or with ``create`` in config, initialize) a home directory."""
        path = Path(home)
        if not path.is_dir():
            if "create" not in parse_config(config):
                raise EngineError(f"home '{home}' does not exist")
            path.mkdir(parents=True, exist_ok=True)

        db = await aiosqlite.connect(path / DATABASE_FILE)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS tables (
                name TEXT PRIMARY KEY,
                key_format TEXT NOT NULL,
                value_format TEXT NOT NULL
            )
        """)
        await db.commit()
        return cls(home, db)

    async def _open_session(self, config: str) -> Session:
        return SQLiteSession(self)

    async def _release(self) -> None:
        await self.db.close()

    @property
    def backend_type(self) -> str:
        return "sqlite"
