"""ANSI escape sequence builders (7-bit CSI form)."""

CSI = "\x1b["


def show_cursor() -> str:
    return CSI + "?25h"


def hide_cursor() -> str:
    return CSI + "?25l"


def clear_to_end_of_line() -> str:
    return CSI + "K"


def clear_line() -> str:
    return CSI + "2K"


def clear_screen() -> str:
    return CSI + "2J"


def set_position(row: int, column: int) -> str:
    """Move the cursor to a zero-based (row, column) cell."""
    return f"{CSI}{row + 1};{column + 1}f"


def enable_mouse() -> str:
    return CSI + "?1000h"


def disable_mouse() -> str:
    return CSI + "?1000l"
