"""Terminal mode and size queries (POSIX termios)."""

import os
import termios
import tty

TermAttributes = list


def get_size(fd: int) -> tuple[int, int]:
    """Return the (width, height) of the terminal on ``fd`` in cells.

    Raises:
        OSError: If ``fd`` is not a terminal
    """
    size = os.get_terminal_size(fd)
    return size.columns, size.lines


def make_raw(fd: int) -> TermAttributes:
    """Put the terminal into raw mode and return the previous attributes."""
    old = termios.tcgetattr(fd)
    tty.setraw(fd, termios.TCSANOW)
    return old


def restore(fd: int, attributes: TermAttributes) -> None:
    termios.tcsetattr(fd, termios.TCSANOW, attributes)
