"""Factory for opening storage engine connections."""

from .base import Connection


async def open_connection(backend: str, home: str, config: str = "") -> Connection:
    """Open a connection to a database home.

    Args:
        backend: Backend type ("memory" or "sqlite")
        home: Database home (directory for sqlite, any name for memory)
        config: Open configuration, e.g. "create"

    Returns:
        Open Connection instance

    Raises:
        ValueError: If backend type is not supported
        EngineError: If the home cannot be opened
    """
    if backend == "memory":
        from .in_memory import InMemoryConnection
        return InMemoryConnection(home, config)

    elif backend == "sqlite":
        from .sqlite import SQLiteConnection
        return await SQLiteConnection.open(home, config)

    raise ValueError(
        f"Unsupported storage backend: {backend}. "
        f"Supported backends: memory, sqlite"
    )
