"""Shell configuration.

Centralizes runtime constants and the launch options model.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

# Prompt shown while no database is connected
DEFAULT_PROMPT = "$ "

# Prompt template while connected; receives the connection home
CONNECTED_PROMPT = "[{home}]$ "

# How long a submitted command may wait for the executor (seconds)
COMMAND_HANDOFF_TIMEOUT = 1.0

# Submitted commands that may wait unconsumed before handoffs block
COMMAND_QUEUE_SIZE = 2


class ShellConfig(BaseModel):
    """Launch options for a shell session."""

    home: str = Field(default="", description="Database home opened at startup")
    open_config: str = Field(default="", description="Configuration for the startup open")
    session_config: str = Field(default="", description="Configuration for the startup session")
    cursor_config: str = Field(default="", description="Configuration for the startup cursor")
    uri: str = Field(default="", description="Table URI to open a cursor on at startup")
    backend: Literal["memory", "sqlite"] = Field(default="sqlite", description="Storage backend")
    log_path: Path | None = Field(default=None, description="Log file; logging is discarded if unset")

    def startup_commands(self) -> list[str]:
        """Commands submitted before the first input is processed."""
        if not self.home:
            return []

        commands = [f"open {self.home} {self.open_config}".rstrip()]
        commands.append(f"open-session {self.session_config}".rstrip())

        if self.uri:
            commands.append(f"open-cursor {self.uri} {self.cursor_config}".rstrip())

        return commands
