"""Decoding of raw terminal input bytes into key codes."""

from __future__ import annotations

from enum import IntEnum
from typing import NamedTuple, Optional

_ESC = 0x1B
_CSI_OPEN = ord("[")


class Key(IntEnum):
    """Special key codes and modifier bits.

    Plain characters are reported as their Unicode code point. Special keys
    lie above the Unicode range, and modifiers are bits above those that are
    or-ed into a key code. Function key n is ``Key.F + n``.
    """

    ENTER = 0x110000
    TAB = 0x110001
    BS = 0x110002
    ESC = 0x110003
    DEL = 0x110004
    INS = 0x110005
    HOME = 0x110006
    END = 0x110007
    PGUP = 0x110008
    PGDWN = 0x110009
    UP = 0x11000A
    DOWN = 0x11000B
    LEFT = 0x11000C
    RIGHT = 0x11000D
    MENU = 0x11000E
    KP0 = 0x110010
    KP1 = 0x110011
    KP2 = 0x110012
    KP3 = 0x110013
    KP4 = 0x110014
    KP5 = 0x110015
    KP6 = 0x110016
    KP7 = 0x110017
    KP8 = 0x110018
    KP9 = 0x110019
    KPDEC = 0x11001A
    KPENTER = 0x11001B
    F = 0x110100

    MOD_SHIFT = 1 << 22
    MOD_CTRL = 1 << 23
    MOD_ALT = 1 << 24


MODIFIER_MASK = Key.MOD_SHIFT | Key.MOD_CTRL | Key.MOD_ALT


class _KeyEntry(NamedTuple):
    seq: bytes
    key: int
    # When seq is matched, it is replaced by this prefix and key is or-ed
    # into the modifiers of the final result.
    replace: Optional[bytes] = None


_SHIFT = Key.MOD_SHIFT
_CTRL = Key.MOD_CTRL
_ALT = Key.MOD_ALT

_KEYS: tuple[_KeyEntry, ...] = (
    _KeyEntry(b"\010", Key.BS),
    _KeyEntry(b"\011", Key.TAB),
    _KeyEntry(b"\012", Key.ENTER),
    _KeyEntry(b"\177", Key.BS),

    _KeyEntry(b"\033[1~", Key.HOME),
    _KeyEntry(b"\033[2~", Key.INS),
    _KeyEntry(b"\033[3~", Key.DEL),
    _KeyEntry(b"\033[4~", Key.END),
    _KeyEntry(b"\033[5~", Key.PGUP),
    _KeyEntry(b"\033[6~", Key.PGDWN),
    _KeyEntry(b"\033[7~", Key.HOME),
    _KeyEntry(b"\033[8~", Key.END),

    _KeyEntry(b"\033[11~", Key.F + 1),
    _KeyEntry(b"\033[12~", Key.F + 2),
    _KeyEntry(b"\033[13~", Key.F + 3),
    _KeyEntry(b"\033[14~", Key.F + 4),
    _KeyEntry(b"\033[15~", Key.F + 5),
    _KeyEntry(b"\033[17~", Key.F + 6),
    _KeyEntry(b"\033[18~", Key.F + 7),
    _KeyEntry(b"\033[19~", Key.F + 8),
    _KeyEntry(b"\033[20~", Key.F + 9),
    _KeyEntry(b"\033[21~", Key.F + 10),
    _KeyEntry(b"\033[23~", Key.F + 11),
    _KeyEntry(b"\033[24~", Key.F + 12),

    _KeyEntry(b"\033OA", Key.UP),
    _KeyEntry(b"\033OB", Key.DOWN),
    _KeyEntry(b"\033OC", Key.RIGHT),
    _KeyEntry(b"\033OD", Key.LEFT),
    _KeyEntry(b"\033[A", Key.UP),
    _KeyEntry(b"\033[B", Key.DOWN),
    _KeyEntry(b"\033[C", Key.RIGHT),
    _KeyEntry(b"\033[D", Key.LEFT),
    _KeyEntry(b"\033[E", Key.KP5),
    _KeyEntry(b"\033[F", Key.END),
    _KeyEntry(b"\033[H", Key.HOME),

    _KeyEntry(b"\033[[A", Key.F + 1),
    _KeyEntry(b"\033[[B", Key.F + 2),
    _KeyEntry(b"\033[[C", Key.F + 3),
    _KeyEntry(b"\033[[D", Key.F + 4),
    _KeyEntry(b"\033[[E", Key.F + 5),

    _KeyEntry(b"\033OE", Key.KP5),
    _KeyEntry(b"\033OM", Key.KPENTER),
    _KeyEntry(b"\033OP", Key.F + 1),
    _KeyEntry(b"\033OQ", Key.F + 2),
    _KeyEntry(b"\033OR", Key.F + 3),
    _KeyEntry(b"\033OS", Key.F + 4),

    _KeyEntry(b"\033Oa", Key.UP | _CTRL),
    _KeyEntry(b"\033Ob", Key.DOWN | _CTRL),
    _KeyEntry(b"\033Oc", Key.RIGHT | _CTRL),
    _KeyEntry(b"\033Od", Key.LEFT | _CTRL),
    _KeyEntry(b"\033Oj", ord("*")),
    _KeyEntry(b"\033Ok", ord("+")),
    _KeyEntry(b"\033Om", ord("-")),
    _KeyEntry(b"\033On", Key.KPDEC),
    _KeyEntry(b"\033Oo", ord("/")),
    _KeyEntry(b"\033Op", Key.KP0),
    _KeyEntry(b"\033Oq", Key.KP1),
    _KeyEntry(b"\033Or", Key.KP2),
    _KeyEntry(b"\033Os", Key.KP3),
    _KeyEntry(b"\033Ot", Key.KP4),
    _KeyEntry(b"\033Ou", Key.KP5),
    _KeyEntry(b"\033Ov", Key.KP6),
    _KeyEntry(b"\033Ow", Key.KP7),
    _KeyEntry(b"\033Ox", Key.KP8),
    _KeyEntry(b"\033Oy", Key.KP9),

    _KeyEntry(b"\033[a", Key.UP | _SHIFT),
    _KeyEntry(b"\033[b", Key.DOWN | _SHIFT),
    _KeyEntry(b"\033[c", Key.RIGHT | _SHIFT),
    _KeyEntry(b"\033[d", Key.LEFT | _SHIFT),
    _KeyEntry(b"\033[2^", Key.INS | _CTRL),
    _KeyEntry(b"\033[3^", Key.DEL | _CTRL),
    _KeyEntry(b"\033[5^", Key.PGUP | _CTRL),
    _KeyEntry(b"\033[6^", Key.PGDWN | _CTRL),
    _KeyEntry(b"\033[7^", Key.HOME | _CTRL),
    _KeyEntry(b"\033[8^", Key.END | _CTRL),

    _KeyEntry(b"\033[1;2", _SHIFT, b"\033["),
    _KeyEntry(b"\033[1;3", _ALT, b"\033["),
    _KeyEntry(b"\033[1;5", _CTRL, b"\033["),
    _KeyEntry(b"\033[1;4", _ALT | _SHIFT, b"\033["),
    _KeyEntry(b"\033[1;6", _CTRL | _SHIFT, b"\033["),
    _KeyEntry(b"\033[1;7", _CTRL | _ALT, b"\033["),
    _KeyEntry(b"\033[1;8", _CTRL | _ALT | _SHIFT, b"\033["),

    _KeyEntry(b"\033[29~", Key.MENU),
    _KeyEntry(b"\033[Z", Key.TAB | _SHIFT),
)


def _utf8_code_length(lead: int) -> int:
    """Length of a UTF-8 sequence from its first byte, or -1 if invalid."""
    if lead < 0x80:
        return 1
    ones = 0
    while lead & (0x80 >> ones):
        ones += 1
    return ones if 2 <= ones <= 4 else -1


class _NeedMore(Exception):
    """More input bytes are required before decoding can continue."""


class KeyDecoder:
    """Turns a stream of terminal bytes into key codes."""

    BUFFER_SIZE = 256

    def __init__(self) -> None:
        self._buf = bytearray()
        self._mods = 0

    @property
    def pending(self) -> bytes:
        """Bytes received but not yet decoded."""
        return bytes(self._buf)

    @property
    def space(self) -> int:
        """Number of bytes the buffer can still accept."""
        return self.BUFFER_SIZE - len(self._buf)

    def feed(self, data: bytes) -> int:
        """Add input bytes; returns how many fitted into the buffer."""
        chunk = bytes(data[: self.space])
        self._buf.extend(chunk)
        return len(chunk)

    def _skip(self, count: int) -> None:
        del self._buf[:count]
        self._mods = 0

    def process(self, timeout: bool) -> list[int]:
        """Decode as many keys as possible.

        timeout is true when no input arrived for a while; only then is a lone
        ESC reported as the escape key.
        """
        keys: list[int] = []
        try:
            while self._buf:
                key = self._next_key(timeout)
                if key is not None:
                    keys.append(key)
        except _NeedMore:
            pass
        return keys

    def _next_key(self, timeout: bool) -> Optional[int]:
        buf = self._buf
        if timeout and buf[0] == _ESC and (len(buf) == 1 or buf[1] == _ESC):
            self._skip(1)
            return int(Key.ESC)

        utf8_len = _utf8_code_length(buf[0])
        if utf8_len > 1:
            if len(buf) < utf8_len:
                raise _NeedMore
            chunk = bytes(buf[:utf8_len])
            mods = self._mods
            self._skip(utf8_len)
            try:
                return ord(chunk.decode("utf-8")) | mods
            except UnicodeDecodeError:
                return None

        match = self._match_entry()
        if match is None:
            return self._plain_key()

        seq_len = len(match.seq)
        if seq_len > len(buf):
            raise _NeedMore
        if match.replace is not None:
            buf[:seq_len] = match.replace
            self._mods |= match.key
            return None
        key = self._mods | match.key
        self._skip(seq_len)
        return key

    def _match_entry(self) -> Optional[_KeyEntry]:
        buf = self._buf
        match: Optional[_KeyEntry] = None
        for entry in _KEYS:
            n = min(len(buf), len(entry.seq))
            if buf[:n] == entry.seq[:n]:
                if match is not None:
                    raise _NeedMore
                match = entry
        return match

    def _plain_key(self) -> Optional[int]:
        buf = self._buf
        mods = 0
        if buf[0] == _ESC:
            if len(buf) > 1 and buf[1] == _CSI_OPEN:
                # Unknown CSI sequence: drop it once its final byte arrives.
                end = next(
                    (i for i, b in enumerate(buf[2:], 2) if 0x40 <= b <= 0x7E), None
                )
                if end is None:
                    raise _NeedMore
                self._skip(end + 1)
                return None
            self._skip(1)
            if buf and 0 < buf[0] < 127:
                mods |= Key.MOD_ALT
            else:
                # Most likely a complete unsupported sequence: drop it.
                self._skip(len(buf))
                return None
        c = buf[0]
        self._skip(1)
        if c < 32:
            # 1..26 is ^A..^Z, and 27..31 is ^3..^7
            c = c + ord("a") - 1 if c <= 26 else c + ord("3") - 27
            mods |= Key.MOD_CTRL
        return c | mods