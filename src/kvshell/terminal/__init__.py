"""Terminal module for kvshell.

Module structure (each module hides a design decision):
- events.py: Input event types
- ansi.py: Control sequence encoding
- decoder.py: Byte to event decoding
- rawmode.py: Terminal mode switching and size queries
- reader.py: Blocking input reads and batch forwarding
- resize.py: Terminal size polling
- writer.py: Buffered render output
"""

from .decoder import decode
from .events import (
    InputEvent,
    Key,
    KeyKind,
    Modifiers,
    MouseButton,
    MousePress,
    MouseRelease,
    MouseScroll,
    Point,
    ScrollDirection,
)
from .writer import RenderWriter

__all__ = [
    "InputEvent",
    "Key",
    "KeyKind",
    "Modifiers",
    "MouseButton",
    "MousePress",
    "MouseRelease",
    "MouseScroll",
    "Point",
    "RenderWriter",
    "ScrollDirection",
    "decode",
]
