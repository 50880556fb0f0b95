"""Data models for the shell view.

Hides the internal representation of the screen state owned by the
program actor.
"""

from dataclasses import dataclass, field


@dataclass
class ViewModel:
    """Terminal dimensions and the scrollback log, newest line last."""

    width: int
    height: int
    messages: list[str] = field(default_factory=list)

    def add_log(self, line: str) -> None:
        self.messages.append(line)

    def add_log_split(self, text: str) -> None:
        """Append each line of a multi-line text as its own log line."""
        for line in text.split("\n"):
            self.add_log(line)
