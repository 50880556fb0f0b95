"""Raw terminal bytes to input events.

Hides the byte protocol spoken by the terminal in raw mode:
- UTF-8 text, one Character key per code point
- control codes for Quit (Ctrl-C), Tab, Enter and Backspace
- CSI arrow key sequences (ESC [ A..D)
- X10 mouse reports (ESC [ M followed by three payload runes)

Each call decodes one read chunk on its own. Nothing is carried across
calls, so a sequence split between two reads is decoded as separate
pieces.
"""

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

ESC = "\x1b"

_CONTROL_KEYS = {
    3: KeyKind.QUIT,
    9: KeyKind.TAB,
    13: KeyKind.ENTER,
    127: KeyKind.BACKSPACE,
}

_ARROW_KEYS = {
    "A": KeyKind.UP,
    "B": KeyKind.DOWN,
    "C": KeyKind.RIGHT,
    "D": KeyKind.LEFT,
}

_MOUSE_REPORT = "M"
_MOUSE_PAYLOAD_LEN = 3

_PRESS_BUTTONS = {
    0: MouseButton.LEFT,
    1: MouseButton.MIDDLE,
    2: MouseButton.RIGHT,
}

_SCROLL_DIRECTIONS = {
    0: ScrollDirection.UP,
    1: ScrollDirection.DOWN,
}


def decode(data: bytes) -> list[InputEvent]:
    """Decode one read chunk into events, preserving arrival order.

    Invalid UTF-8 becomes U+FFFD and unrecognized escape sequences are
    dropped. This function never raises on malformed input.

    Args:
        data: Bytes returned by a single read of the terminal

    Returns:
        Decoded events, possibly empty
    """
    runes = data.decode("utf-8", errors="replace")
    events: list[InputEvent] = []

    i = 0
    while i < len(runes):
        rune = runes[i]

        if rune == ESC:
            i = _decode_escape(runes, i, events)
            continue

        kind = _CONTROL_KEYS.get(ord(rune))
        if kind is not None:
            events.append(Key(kind))
        else:
            events.append(Key(KeyKind.CHARACTER, rune))
        i += 1

    return events


def _decode_escape(runes: str, start: int, events: list[InputEvent]) -> int:
    """Decode the sequence introduced by ESC at ``start``.

    Returns the index of the first rune after the sequence.
    """
    end = len(runes)

    # A lone ESC, or ESC not followed by '[', is the Escape key itself
    if start + 1 >= end or runes[start + 1] != "[":
        events.append(Key(KeyKind.ESCAPE))
        return start + 1

    if start + 2 >= end:
        return end

    final = runes[start + 2]

    if final in _ARROW_KEYS:
        events.append(Key(_ARROW_KEYS[final]))
        return start + 3

    if final == _MOUSE_REPORT:
        payload = runes[start + 3:start + 3 + _MOUSE_PAYLOAD_LEN]
        if len(payload) < _MOUSE_PAYLOAD_LEN:
            return end

        event = _decode_mouse(payload)
        if event is not None:
            events.append(event)
        return start + 3 + _MOUSE_PAYLOAD_LEN

    if _is_parameter(final):
        return _skip_csi_parameters(runes, start + 2)

    return start + 3


def _decode_mouse(payload: str) -> InputEvent | None:
    """Decode the button and coordinate runes of an X10 mouse report."""
    button = ord(payload[0]) - 32
    point = Point(x=ord(payload[1]) - 1, y=ord(payload[2]) - 1)

    modifiers = Modifiers(
        shift=bool(button & (1 << 4)),
        alt=bool(button & (1 << 3)),
        control=bool(button & (1 << 2)),
    )

    low = button & 3

    if button & (1 << 6):
        direction = _SCROLL_DIRECTIONS.get(low)
        if direction is None:
            return None
        return MouseScroll(point=point, direction=direction, modifiers=modifiers)

    if low == 3:
        # X10 reports every release the same way, whichever button was held
        return MouseRelease(point=point, modifiers=modifiers)

    return MousePress(point=point, button=_PRESS_BUTTONS[low], modifiers=modifiers)


def _is_parameter(rune: str) -> bool:
    return 0x30 <= ord(rune) <= 0x3F


def _skip_csi_parameters(runes: str, index: int) -> int:
    """Skip parameter and intermediate runes up to and including the final rune."""
    end = len(runes)
    while index < end and 0x20 <= ord(runes[index]) <= 0x3F:
        index += 1

    if index < end and 0x40 <= ord(runes[index]) <= 0x7E:
        return index + 1

    return end
