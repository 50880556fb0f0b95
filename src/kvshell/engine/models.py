"""Data models for the storage engine.

Table schemas and configuration strings, independent of the backend that
stores the rows.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import EngineError

TABLE_PREFIX = "table:"

Row = tuple[Any, ...]


def parse_config(config: str) -> dict[str, str]:
    """Parse a ``key=value,flag`` configuration string.

    Bare flags map to ``"true"``. Empty entries are ignored.

    Example:
        >>> parse_config("create,key_format=S")
        {'create': 'true', 'key_format': 'S'}
    """
    options: dict[str, str] = {}
    for entry in config.split(","):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, value = entry.partition("=")
        options[name.strip()] = value.strip() if sep else "true"
    return options


def table_name(uri: str) -> str:
    """Extract the table name from a ``table:<name>`` URI."""
    if not uri.startswith(TABLE_PREFIX) or len(uri) == len(TABLE_PREFIX):
        raise EngineError(f"invalid uri '{uri}': expected {TABLE_PREFIX}<name>")
    return uri[len(TABLE_PREFIX):]


class TableSchema(BaseModel):
    """Column layout of a table.

    Each format character is one column: ``S`` string, ``i``/``q`` integer.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(pattern=r"^[A-Za-z0-9_.\-]+$", description="Table name without prefix")
    key_format: str = Field(default="S", pattern=r"^[Siq]+$")
    value_format: str = Field(default="S", pattern=r"^[Siq]+$")

    @classmethod
    def from_config(cls, name: str, config: str) -> "TableSchema":
        options = parse_config(config)
        fields = {k: options[k] for k in ("key_format", "value_format") if k in options}
        try:
            return cls(name=name, **fields)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"])
            raise EngineError(f"invalid table '{name}': {field}: {error['msg']}") from e

    @property
    def key_count(self) -> int:
        return len(self.key_format)

    @property
    def value_count(self) -> int:
        return len(self.value_format)

    def coerce_key(self, parts: tuple[str, ...]) -> Row:
        return _coerce("key", self.key_format, parts)

    def coerce_value(self, parts: tuple[str, ...]) -> Row:
        return _coerce("value", self.value_format, parts)


def _coerce(what: str, fmt: str, parts: tuple[str, ...]) -> Row:
    if len(parts) != len(fmt):
        raise EngineError(f"{what} has {len(parts)} columns, format '{fmt}' needs {len(fmt)}")

    row = []
    for code, part in zip(fmt, parts):
        if code == "S":
            row.append(part)
            continue
        try:
            row.append(int(part))
        except ValueError as e:
            raise EngineError(f"{what} column '{part}' is not an integer") from e
    return tuple(row)

