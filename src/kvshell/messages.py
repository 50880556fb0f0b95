"""Messages delivered by the command executor to the program.

These models define what the executor can report, independent of how the
program displays them. Errors and plain strings are delivered as-is.
"""

from pydantic import BaseModel, ConfigDict, Field
from rich.cells import cell_len

# Tabular layout: minimum cell width and padding after the widest cell
RESULT_MIN_WIDTH = 10
RESULT_PADDING = 2


class _Message(BaseModel):
    model_config = ConfigDict(frozen=True)


class DatabaseConnected(_Message):
    home: str

    def __str__(self) -> str:
        return f"connected to database at '{self.home}'"


class DatabaseDisconnected(_Message):
    home: str

    def __str__(self) -> str:
        return f"disconnected from '{self.home}'"


class SessionOpened(_Message):
    def __str__(self) -> str:
        return "new session started"


class CursorOpened(_Message):
    uri: str

    def __str__(self) -> str:
        return f"new cursor on '{self.uri}' opened"


class CursorClosed(_Message):
    def __str__(self) -> str:
        return "cursor closed"


class Created(_Message):
    name: str

    def __str__(self) -> str:
        return f"created '{self.name}'"


class Dropped(_Message):
    name: str

    def __str__(self) -> str:
        return f"dropped '{self.name}'"


class ResultSet(_Message):
    """Query output: rows of display strings, keys first then values."""

    rows: list[list[str]] = Field(default_factory=list)

    def lines(self) -> list[str]:
        """Lay the rows out as aligned columns, one line per row."""
        widths: dict[int, int] = {}
        for row in self.rows:
            for col, cell in enumerate(row[:-1]):
                width = max(RESULT_MIN_WIDTH, cell_len(cell) + RESULT_PADDING)
                widths[col] = max(widths.get(col, 0), width)

        lines = []
        for row in self.rows:
            parts = []
            for col, cell in enumerate(row):
                if col == len(row) - 1:
                    parts.append(cell)
                else:
                    parts.append(cell + " " * (widths[col] - cell_len(cell)))
            lines.append("".join(parts))
        return lines

    def __str__(self) -> str:
        return "\n".join(self.lines())


ExecutorMessage = (
    DatabaseConnected
    | DatabaseDisconnected
    | SessionOpened
    | CursorOpened
    | CursorClosed
    | Created
    | Dropped
    | ResultSet
    | Exception
    | str
)
