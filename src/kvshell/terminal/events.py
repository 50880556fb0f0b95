"""Input event types produced by the decoder.

Hides how keys and mouse actions are represented once they have been
decoded from raw terminal bytes. Events are immutable values.
"""

from dataclasses import dataclass, field
from enum import Enum


class KeyKind(str, Enum):
    """Kinds of key presses the decoder distinguishes."""

    CHARACTER = "character"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ESCAPE = "escape"
    BACKSPACE = "backspace"
    ENTER = "enter"
    QUIT = "quit"
    TAB = "tab"


class MouseButton(str, Enum):
    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"


class ScrollDirection(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class Point:
    """Zero-based terminal cell coordinates."""

    x: int
    y: int


@dataclass(frozen=True)
class Modifiers:
    shift: bool = False
    alt: bool = False
    control: bool = False


@dataclass(frozen=True)
class Key:
    """A key press. ``rune`` is only set for CHARACTER keys."""

    kind: KeyKind
    rune: str = ""


@dataclass(frozen=True)
class MousePress:
    point: Point
    button: MouseButton
    modifiers: Modifiers = field(default_factory=Modifiers)


@dataclass(frozen=True)
class MouseRelease:
    point: Point
    modifiers: Modifiers = field(default_factory=Modifiers)


@dataclass(frozen=True)
class MouseScroll:
    point: Point
    direction: ScrollDirection
    modifiers: Modifiers = field(default_factory=Modifiers)


InputEvent = Key | MousePress | MouseRelease | MouseScroll
