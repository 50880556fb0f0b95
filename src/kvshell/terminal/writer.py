"""Render writer.

Thin wrapper that emits cursor-control sequences and text to an output
stream. Nothing reaches the terminal until ``flush`` is called.
"""

from typing import TextIO

from . import ansi


class RenderWriter:
    """Writes escape sequences and raw text to a text stream."""

    def __init__(self, out: TextIO) -> None:
        self._out = out

    def clear_screen(self) -> None:
        self._out.write(ansi.clear_screen())
        self.set_cursor(0, 0)

    def clear_line(self) -> None:
        self._out.write(ansi.clear_line())

    def clear_to_end_of_line(self) -> None:
        self._out.write(ansi.clear_to_end_of_line())

    def set_cursor(self, row: int, column: int) -> None:
        self._out.write(ansi.set_position(row, column))

    def show_cursor(self) -> None:
        self._out.write(ansi.show_cursor())

    def hide_cursor(self) -> None:
        self._out.write(ansi.hide_cursor())

    def enable_mouse(self) -> None:
        self._out.write(ansi.enable_mouse())

    def disable_mouse(self) -> None:
        self._out.write(ansi.disable_mouse())

    def write(self, text: str) -> int:
        return self._out.write(text)

    def flush(self) -> None:
        try:
            self._out.flush()
        except OSError:
            # Terminal gone (hangup); the next read will end the session
            pass
