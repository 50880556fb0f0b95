"""
kvshell: an interactive terminal shell for key/value storage engines.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .messages import (
    CursorClosed,
    CursorOpened,
    Created,
    DatabaseConnected,
    DatabaseDisconnected,
    Dropped,
    ResultSet,
    SessionOpened,
)

__all__ = [
    "CursorClosed",
    "CursorOpened",
    "Created",
    "DatabaseConnected",
    "DatabaseDisconnected",
    "Dropped",
    "ResultSet",
    "SessionOpened",
]
