"""Input-line editor.

Hides the editing state of the single command line: content, cursor
position and the submitted-command history used for Up/Down navigation.
"""

from collections.abc import Callable

from ..terminal.events import InputEvent, Key, KeyKind
from .config import DEFAULT_PROMPT

SubmitCallback = Callable[[str, str], None]


class InputLineEditor:
    """State machine for the editable command line.

    ``history_index`` is 0 while not browsing history, otherwise the offset
    of the shown entry counted back from the newest (1 = newest).
    """

    def __init__(self, submit: SubmitCallback, prompt: str = DEFAULT_PROMPT) -> None:
        self.prompt = prompt
        self.content = ""
        self.cursor_index = 0
        self.history: list[str] = []
        self.history_index = 0
        self._submit = submit

    def update(self, event: InputEvent, width: int) -> None:
        """Apply one input event; ``width`` is the current terminal width."""
        if not isinstance(event, Key):
            return

        kind = event.kind

        if kind == KeyKind.ENTER:
            self._enter()
        elif kind == KeyKind.UP:
            self._history_back()
        elif kind == KeyKind.DOWN:
            self._history_forward()
        elif kind == KeyKind.RIGHT:
            if self.cursor_index < len(self.content):
                self.cursor_index += 1
        elif kind == KeyKind.LEFT:
            if self.cursor_index > 0:
                self.cursor_index -= 1
        elif kind == KeyKind.CHARACTER:
            self._insert(event.rune, width)
        elif kind == KeyKind.BACKSPACE:
            self._backspace()

    def _enter(self) -> None:
        if self.content:
            self.history.append(self.content)
            self._submit(self.prompt, self.content)

        self.content = ""
        self.cursor_index = 0
        self.history_index = 0

    def _history_back(self) -> None:
        if not self.history:
            return

        if self.history_index < len(self.history):
            self.history_index += 1

        self.content = self.history[len(self.history) - self.history_index]
        self.cursor_index = len(self.content)

    def _history_forward(self) -> None:
        if self.history_index == 0:
            return

        self.history_index -= 1

        if self.history_index > 0:
            self.content = self.history[len(self.history) - self.history_index]
        else:
            self.content = ""

        self.cursor_index = len(self.content)

    def _insert(self, rune: str, width: int) -> None:
        i = self.cursor_index
        self.content = self.content[:i] + rune + self.content[i:]

        if len(self.content) + len(self.prompt) > width:
            self.content = self.content[:width]
        else:
            self.cursor_index += 1

    def _backspace(self) -> None:
        if self.cursor_index == 0:
            return

        i = self.cursor_index
        self.content = self.content[:i - 1] + self.content[i:]
        self.cursor_index -= 1
