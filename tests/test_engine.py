"""Tests for the storage engine backends."""
import pytest
import pytest_asyncio

from kvshell.engine import EngineError, TableSchema, open_connection, parse_config, table_name


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def connection(request, tmp_path):
    """Open a connection on each backend."""
    conn = await open_connection(request.param, str(tmp_path / "home"), "create")
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def session(connection):
    return await connection.open_session()


async def filled_cursor(session, uri="table:t", config=""):
    await session.create(uri, config)
    cursor = await session.open_cursor(uri)
    for key, value in [("b", "2"), ("a", "1"), ("c", "3")]:
        cursor.set_key(key)
        cursor.set_value(value)
        await cursor.insert()
    return cursor


class TestModels:
    """Tests for configuration parsing and schemas."""

    def test_parse_config(self):
        assert parse_config("create, key_format=Si,,value_format=q") == {
            "create": "true",
            "key_format": "Si",
            "value_format": "q",
        }

    def test_table_name(self):
        assert table_name("table:users") == "users"

    @pytest.mark.parametrize("uri", ["users", "table:", "file:users"])
    def test_table_name_rejects_bad_uri(self, uri):
        with pytest.raises(EngineError):
            table_name(uri)

    def test_schema_defaults(self):
        schema = TableSchema.from_config("t", "")
        assert (schema.key_format, schema.value_format) == ("S", "S")

    def test_schema_rejects_bad_format(self):
        with pytest.raises(EngineError, match="invalid table 't'"):
            TableSchema.from_config("t", "key_format=x")

    def test_coerce_checks_arity_and_types(self):
        schema = TableSchema(name="t", key_format="Si", value_format="S")
        assert schema.coerce_key(("a", "7")) == ("a", 7)

        with pytest.raises(EngineError):
            schema.coerce_key(("a",))
        with pytest.raises(EngineError):
            schema.coerce_key(("a", "seven"))


class TestBackends:
    """Behavior shared by every backend."""

    @pytest.mark.asyncio
    async def test_backend_type(self, connection):
        assert connection.backend_type in ("memory", "sqlite")

    @pytest.mark.asyncio
    async def test_search_positions_cursor(self, session):
        cursor = await filled_cursor(session)

        cursor.set_key("b")
        await cursor.search()

        assert cursor.get_key() == ("b",)
        assert cursor.get_value() == ("2",)

    @pytest.mark.asyncio
    async def test_search_missing_key(self, session):
        cursor = await filled_cursor(session)
        cursor.set_key("zzz")

        with pytest.raises(EngineError, match="item not found"):
            await cursor.search()

    @pytest.mark.asyncio
    async def test_next_iterates_in_key_order(self, session):
        cursor = await filled_cursor(session)

        keys = []
        while await cursor.next():
            keys.append(cursor.get_key())

        assert keys == [("a",), ("b",), ("c",)]
        # Exhausting the table resets the cursor
        with pytest.raises(EngineError, match="not positioned"):
            cursor.get_key()

    @pytest.mark.asyncio
    async def test_next_continues_after_search(self, session):
        cursor = await filled_cursor(session)
        cursor.set_key("a")
        await cursor.search()

        assert await cursor.next()
        assert cursor.get_key() == ("b",)

    @pytest.mark.asyncio
    async def test_insert_overwrites(self, session):
        cursor = await filled_cursor(session)
        cursor.set_key("a")
        cursor.set_value("one")
        await cursor.insert()

        cursor.set_key("a")
        await cursor.search()
        assert cursor.get_value() == ("one",)

    @pytest.mark.asyncio
    async def test_insert_requires_key_and_value(self, session):
        await session.create("table:t")
        cursor = await session.open_cursor("table:t")

        with pytest.raises(EngineError, match="no key set"):
            await cursor.insert()

        cursor.set_key("a")
        with pytest.raises(EngineError, match="no value set"):
            await cursor.insert()

    @pytest.mark.asyncio
    async def test_remove(self, session):
        cursor = await filled_cursor(session)
        cursor.set_key("b")
        await cursor.remove()

        cursor.set_key("b")
        with pytest.raises(EngineError, match="item not found"):
            await cursor.remove()

    @pytest.mark.asyncio
    async def test_integer_columns(self, session):
        await session.create("table:n", "key_format=i,value_format=Sq")
        cursor = await session.open_cursor("table:n")
        for key in ["10", "9"]:
            cursor.set_key(key)
            cursor.set_value("x", key)
            await cursor.insert()

        rows = []
        while await cursor.next():
            rows.append(cursor.get_key() + cursor.get_value())

        assert rows == [(9, "x", 9), (10, "x", 10)]

    @pytest.mark.asyncio
    async def test_create_twice_fails(self, session):
        await session.create("table:t")
        with pytest.raises(EngineError, match="already exists"):
            await session.create("table:t")

    @pytest.mark.asyncio
    async def test_drop(self, session):
        await session.create("table:t")
        await session.drop("table:t")

        with pytest.raises(EngineError, match="does not exist"):
            await session.open_cursor("table:t")

    @pytest.mark.asyncio
    async def test_drop_busy_table_fails(self, session):
        await session.create("table:t")
        cursor = await session.open_cursor("table:t")

        with pytest.raises(EngineError, match="open cursors"):
            await session.drop("table:t")

        await cursor.close()
        await session.drop("table:t")

    @pytest.mark.asyncio
    async def test_closed_session_closes_cursors(self, session):
        await session.create("table:t")
        cursor = await session.open_cursor("table:t")

        await session.close()

        assert cursor.closed
        with pytest.raises(EngineError, match="cursor is closed"):
            cursor.set_key("a")
        with pytest.raises(EngineError, match="session is closed"):
            await session.open_cursor("table:t")

    @pytest.mark.asyncio
    async def test_closed_handles_are_forgotten(self, connection):
        session = await connection.open_session()
        await session.create("table:t")
        cursor = await session.open_cursor("table:t")

        await cursor.close()
        assert session._cursors == []

        await session.close()
        assert connection._sessions == []
        # Nothing is left for the connection to close
        await connection.close()


class TestPersistence:
    """Tests for data surviving a reconnect."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("backend", ["memory", "sqlite"])
    async def test_reconnect_sees_rows(self, backend, tmp_path):
        home = str(tmp_path / "home")

        conn = await open_connection(backend, home, "create")
        cursor = await filled_cursor(await conn.open_session())
        await conn.close()
        assert cursor.closed

        conn = await open_connection(backend, home)
        session = await conn.open_session()
        cursor = await session.open_cursor("table:t")
        cursor.set_key("c")
        await cursor.search()
        assert cursor.get_value() == ("3",)
        await conn.close()

    @pytest.mark.asyncio
    async def test_sqlite_missing_home(self, tmp_path):
        with pytest.raises(EngineError, match="does not exist"):
            await open_connection("sqlite", str(tmp_path / "missing"))

    @pytest.mark.asyncio
    async def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unsupported storage backend"):
            await open_connection("postgres", "home")
