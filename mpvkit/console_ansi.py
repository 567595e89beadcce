"""ANSI escape handling and key-event translation for consoles without VT support."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from itertools import islice
from typing import Iterable, Optional, Union

from mpvkit.terminal_input import Key
from mpvkit.w32_keyboard import vkey_to_mpkey

FOREGROUND_BLUE = 0x0001
FOREGROUND_GREEN = 0x0002
FOREGROUND_RED = 0x0004
FOREGROUND_INTENSITY = 0x0008
BACKGROUND_BLUE = 0x0010
BACKGROUND_GREEN = 0x0020
BACKGROUND_RED = 0x0040
BACKGROUND_INTENSITY = 0x0080
COMMON_LVB_REVERSE_VIDEO = 0x4000
COMMON_LVB_UNDERSCORE = 0x8000

FOREGROUND_ALL = FOREGROUND_RED | FOREGROUND_GREEN | FOREGROUND_BLUE
BACKGROUND_ALL = BACKGROUND_RED | BACKGROUND_GREEN | BACKGROUND_BLUE

RIGHT_ALT_PRESSED = 0x0001
LEFT_ALT_PRESSED = 0x0002
RIGHT_CTRL_PRESSED = 0x0004
LEFT_CTRL_PRESSED = 0x0008
SHIFT_PRESSED = 0x0010
ENHANCED_KEY = 0x0100

_ANSI_TO_FG = tuple(
    (FOREGROUND_RED if i & 1 else 0)
    | (FOREGROUND_GREEN if i & 2 else 0)
    | (FOREGROUND_BLUE if i & 4 else 0)
    for i in range(8)
)
_ANSI_TO_BG = tuple(
    (BACKGROUND_RED if i & 1 else 0)
    | (BACKGROUND_GREEN if i & 2 else 0)
    | (BACKGROUND_BLUE if i & 4 else 0)
    for i in range(8)
)

_MAX_PARAMS = 16
_INT = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")
_OSC_END = re.compile("\007|\x9c|\033\\\\")


def apply_sgr(attr: int, params: Iterable[int], default_attrs: int) -> int:
    """Return the console attributes after an SGR ("m") sequence with params.

    An empty parameter list resets to default_attrs. Italic is not emulated,
    and 256-colour and true-colour sub-parameters are skipped.
    """
    values = list(params) or [0]
    it = iter(values)
    for p in it:
        if p == 0:
            attr = default_attrs
        elif p == 1:
            attr |= FOREGROUND_INTENSITY
        elif p == 22:
            attr &= ~FOREGROUND_INTENSITY
        elif p == 4:
            attr |= COMMON_LVB_UNDERSCORE
        elif p == 24:
            attr &= ~COMMON_LVB_UNDERSCORE
        elif p == 7:
            attr |= COMMON_LVB_REVERSE_VIDEO
        elif p == 27:
            attr &= ~COMMON_LVB_REVERSE_VIDEO
        elif 30 <= p <= 37:
            attr = (attr & ~FOREGROUND_ALL) | _ANSI_TO_FG[p - 30]
        elif p == 39:
            attr = (attr & ~FOREGROUND_ALL) | (default_attrs & FOREGROUND_ALL)
        elif 40 <= p <= 47:
            attr = (attr & ~BACKGROUND_ALL) | _ANSI_TO_BG[p - 40]
        elif p == 49:
            attr = (attr & ~BACKGROUND_ALL) | (default_attrs & BACKGROUND_ALL)
        elif p in (38, 48):
            # 256 colours: <38/48>;5;N  true colours: <38/48>;2;R;G;B
            sub = next(it, None)
            if sub == 5:
                next(it, None)
            elif sub == 2:
                for _ in islice(it, 3):
                    pass
            elif sub is not None:
                break  # unrecognised: ignore the rest
    return attr & 0xFFFF


def translate_key_event(
    vkey: int, control_state: int, char: Union[int, str], key_down: bool
) -> Optional[int]:
    """Turn a console key event into a key code, or None if it yields no key."""
    if not key_down:
        return None
    extended = bool(control_state & ENHANCED_KEY)

    mods = 0
    if control_state & (LEFT_ALT_PRESSED | RIGHT_ALT_PRESSED):
        mods |= Key.MOD_ALT
    if control_state & (LEFT_CTRL_PRESSED | RIGHT_CTRL_PRESSED):
        mods |= Key.MOD_CTRL
    if control_state & SHIFT_PRESSED:
        mods |= Key.MOD_SHIFT

    mpkey = vkey_to_mpkey(vkey, extended)
    if mpkey:
        return mpkey | mods

    if isinstance(char, str):
        c = ord(char) if char else 0
    else:
        c = char
    # Ctrl always produces control characters; shift them back up.
    if 0 < c < 0x20 and mods & Key.MOD_CTRL:
        c += 0x40 if mods & Key.MOD_SHIFT else 0x60
    if c >= 0x20:
        return c | mods
    return None


@dataclass
class ConsoleState:
    """A console screen buffer driven by text with ANSI escape sequences.

    Escape sequences become console operations recorded in ``operations``:
    ``("write", text)``, ``("fill", x, y, count)``, ``("cursor", x, y)``,
    ``("attributes", attr)`` and ``("title", text)``. When ``native_vt`` is
    set the console interprets sequences itself and text passes through.
    """

    width: int = 80
    cursor_x: int = 0
    cursor_y: int = 0
    attributes: int = FOREGROUND_ALL
    default_attributes: int = FOREGROUND_ALL
    title: str = ""
    native_vt: bool = False
    operations: list[tuple] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ValueError(f"console width must be positive: {self.width}")

    def write_ansi(self, text: str) -> list[tuple]:
        """Write text, interpreting escape sequences; return the operations done."""
        start = len(self.operations)
        text = text.split("\0", 1)[0]
        pos = 0
        while pos < len(text):
            if self.native_vt:
                self._write(text[pos:])
                break
            esc = text.find("\033", pos)
            if esc < 0:
                self._write(text[pos:])
                break
            self._write(text[pos:esc])
            intro = text[esc + 1 : esc + 2]
            if intro == "[":
                pos = self._control_sequence(text, esc + 2)
            elif intro == "]":
                pos = self._os_command(text, esc + 2)
            else:
                # A bare ESC is written as is, and the text after it is dropped.
                self._write("\033")
                break
        return self.operations[start:]

    def _write(self, text: str) -> None:
        if not text:
            return
        self.operations.append(("write", text))
        for ch in text:
            if ch == "\n":
                self.cursor_x = 0
                self.cursor_y += 1
            elif ch == "\r":
                self.cursor_x = 0
            elif ch == "\b":
                self.cursor_x = max(0, self.cursor_x - 1)
            else:
                self.cursor_x += 1
                if self.cursor_x >= self.width:
                    self.cursor_x = 0
                    self.cursor_y += 1

    def _set_cursor(self, x: int, y: int) -> None:
        if x < 0 or y < 0:
            return
        self.cursor_x, self.cursor_y = x, y
        self.operations.append(("cursor", x, y))

    def _control_sequence(self, text: str, pos: int) -> int:
        params: list[int] = []
        while len(params) < _MAX_PARAMS:
            match = _INT.match(text, pos)
            if not match:
                break
            params.append(int(match.group(1)))
            pos = match.end()
            if text[pos : pos + 1] != ";":
                break
            pos += 1
        code = text[pos : pos + 1]
        if code:
            pos += 1

        if code == "K":  # erase to end of line
            x, y = self.cursor_x, self.cursor_y
            self.operations.append(("fill", x, y, self.width - x))
            self._set_cursor(x, y)
        elif code == "A":  # cursor up
            self._set_cursor(self.cursor_x, self.cursor_y - 1)
        elif code == "m":
            attr = apply_sgr(self.attributes, params, self.default_attributes)
            if attr != self.attributes:
                self.attributes = attr
                self.operations.append(("attributes", attr))
        return pos

    def _os_command(self, text: str, pos: int) -> int:
        end = _OSC_END.search(text, pos)
        if end is None:
            cmd, pos = text[pos:], len(text)
        else:
            cmd, pos = text[pos : end.start()], end.end()
        # xterm-style "<code>;<param>"; codes 0 and 2 set the window title.
        if len(cmd) >= 2 and cmd[1] == ";" and cmd[0] in "02":
            self.title = cmd[2:]
            self.operations.append(("title", self.title))
        return pos