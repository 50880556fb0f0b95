"""Tests for executor messages and their display strings."""
import pytest

from kvshell.messages import (
    CursorClosed,
    CursorOpened,
    Created,
    DatabaseConnected,
    DatabaseDisconnected,
    Dropped,
    ResultSet,
    SessionOpened,
)


class TestDisplayStrings:
    """Tests for the log line each message produces."""

    @pytest.mark.parametrize("message, text", [
        (DatabaseConnected(home="/tmp/db"), "connected to database at '/tmp/db'"),
        (DatabaseDisconnected(home="/tmp/db"), "disconnected from '/tmp/db'"),
        (SessionOpened(), "new session started"),
        (CursorOpened(uri="table:t"), "new cursor on 'table:t' opened"),
        (CursorClosed(), "cursor closed"),
        (Created(name="table:t"), "created 'table:t'"),
        (Dropped(name="table:t"), "dropped 'table:t'"),
    ])
    def test_str(self, message, text):
        assert str(message) == text

    def test_messages_are_frozen(self):
        message = DatabaseConnected(home="db")
        with pytest.raises(Exception):
            message.home = "other"


class TestResultSet:
    """Tests for tabular result layout."""

    def test_short_cells_pad_to_minimum_width(self):
        assert ResultSet(rows=[["a", "b", "c"]]).lines() == ["a" + " " * 9 + "b" + " " * 9 + "c"]

    def test_wide_cells_pad_column(self):
        """Test that a column is as wide as its widest cell plus two."""
        result = ResultSet(rows=[["verylongkey1", "x"], ["k", "y"]])
        assert result.lines() == [
            "verylongkey1  x",
            "k" + " " * 13 + "y",
        ]

    def test_last_cell_is_not_padded(self):
        result = ResultSet(rows=[["k", "short"], ["k", "a much longer value"]])
        assert result.lines()[0].endswith("short")

    def test_wide_characters_use_display_width(self):
        result = ResultSet(rows=[["日本語日本語", "v"]])
        # Six double-width runes fill twelve cells, plus padding
        assert result.lines() == ["日本語日本語  v"]

    def test_str_joins_lines(self):
        assert str(ResultSet(rows=[["a", "1"], ["b", "2"]])).split("\n") == [
            "a         1",
            "b         2",
        ]

    def test_empty(self):
        assert ResultSet().lines() == []
