"""Command executor module for kvshell.

Maps submitted command lines to storage engine operations.
"""

from .commands import USAGE, CommandError, split_command
from .handler import ConnectionHandler

__all__ = [
    "USAGE",
    "CommandError",
    "ConnectionHandler",
    "split_command",
]
