"""Storage engine module for kvshell.

Provides connection / session / cursor access to key/value tables.
"""

from .base import Connection, Cursor, Session
from .errors import EngineError
from .factory import open_connection
from .models import TableSchema, parse_config, table_name

__all__ = [
    "Connection",
    "Cursor",
    "EngineError",
    "Session",
    "TableSchema",
    "open_connection",
    "parse_config",
    "table_name",
]
