"""Mapping of Windows virtual-key and WM_APPCOMMAND codes to key codes."""

from __future__ import annotations

from enum import IntEnum

from mpvkit.terminal_input import Key


class ExtraKey(IntEnum):
    """Key codes for keys that only Windows input reports.

    They share the code space of :class:`Key` without overlapping it.
    """

    PAUSE = 0x110020
    PRINT = 0x110021
    KPINS = 0x110022
    KPDEL = 0x110023
    NEXT = 0x110024
    PREV = 0x110025
    STOP = 0x110026
    PLAYPAUSE = 0x110027
    PLAY = 0x110028
    RECORD = 0x110029
    FORWARD = 0x11002A
    REWIND = 0x11002B
    CHANNEL_UP = 0x11002C
    CHANNEL_DOWN = 0x11002D


class VK(IntEnum):
    """Windows virtual-key codes used by the key maps."""

    BACK = 0x08
    TAB = 0x09
    CLEAR = 0x0C
    RETURN = 0x0D
    PAUSE = 0x13
    ESCAPE = 0x1B
    PRIOR = 0x21
    NEXT = 0x22
    END = 0x23
    HOME = 0x24
    LEFT = 0x25
    UP = 0x26
    RIGHT = 0x27
    DOWN = 0x28
    SNAPSHOT = 0x2C
    INSERT = 0x2D
    DELETE = 0x2E
    APPS = 0x5D
    NUMPAD0 = 0x60
    NUMPAD1 = 0x61
    NUMPAD2 = 0x62
    NUMPAD3 = 0x63
    NUMPAD4 = 0x64
    NUMPAD5 = 0x65
    NUMPAD6 = 0x66
    NUMPAD7 = 0x67
    NUMPAD8 = 0x68
    NUMPAD9 = 0x69
    DECIMAL = 0x6E
    F1 = 0x70


class AppCommand(IntEnum):
    """WM_APPCOMMAND command values for media keys."""

    MEDIA_NEXTTRACK = 11
    MEDIA_PREVIOUSTRACK = 12
    MEDIA_STOP = 13
    MEDIA_PLAY_PAUSE = 14
    MEDIA_PLAY = 46
    MEDIA_PAUSE = 47
    MEDIA_RECORD = 48
    MEDIA_FAST_FORWARD = 49
    MEDIA_REWIND = 50
    MEDIA_CHANNEL_UP = 51
    MEDIA_CHANNEL_DOWN = 52


_VK_MAP_EXT: dict[int, int] = {
    # cursor keys
    VK.LEFT: Key.LEFT,
    VK.UP: Key.UP,
    VK.RIGHT: Key.RIGHT,
    VK.DOWN: Key.DOWN,
    # navigation block
    VK.INSERT: Key.INS,
    VK.DELETE: Key.DEL,
    VK.HOME: Key.HOME,
    VK.END: Key.END,
    VK.PRIOR: Key.PGUP,
    VK.NEXT: Key.PGDWN,
    # numpad independent of numlock
    VK.RETURN: Key.KPENTER,
}

_VK_MAP: dict[int, int] = {
    # special keys
    VK.ESCAPE: Key.ESC,
    VK.BACK: Key.BS,
    VK.TAB: Key.TAB,
    VK.RETURN: Key.ENTER,
    VK.PAUSE: ExtraKey.PAUSE,
    VK.SNAPSHOT: ExtraKey.PRINT,
    VK.APPS: Key.MENU,
    # F1..F24
    **{VK.F1 + n: Key.F + n + 1 for n in range(24)},
    # numpad with numlock
    **{VK.NUMPAD0 + n: Key.KP0 + n for n in range(10)},
    VK.DECIMAL: Key.KPDEC,
    # numpad without numlock
    VK.INSERT: ExtraKey.KPINS,
    VK.END: Key.KP1,
    VK.DOWN: Key.KP2,
    VK.NEXT: Key.KP3,
    VK.LEFT: Key.KP4,
    VK.CLEAR: Key.KP5,
    VK.RIGHT: Key.KP6,
    VK.HOME: Key.KP7,
    VK.UP: Key.KP8,
    VK.PRIOR: Key.KP9,
    VK.DELETE: ExtraKey.KPDEL,
}

_APPCMD_MAP: dict[int, int] = {
    AppCommand.MEDIA_NEXTTRACK: ExtraKey.NEXT,
    AppCommand.MEDIA_PREVIOUSTRACK: ExtraKey.PREV,
    AppCommand.MEDIA_STOP: ExtraKey.STOP,
    AppCommand.MEDIA_PLAY_PAUSE: ExtraKey.PLAYPAUSE,
    AppCommand.MEDIA_PLAY: ExtraKey.PLAY,
    AppCommand.MEDIA_PAUSE: ExtraKey.PAUSE,
    AppCommand.MEDIA_RECORD: ExtraKey.RECORD,
    AppCommand.MEDIA_FAST_FORWARD: ExtraKey.FORWARD,
    AppCommand.MEDIA_REWIND: ExtraKey.REWIND,
    AppCommand.MEDIA_CHANNEL_UP: ExtraKey.CHANNEL_UP,
    AppCommand.MEDIA_CHANNEL_DOWN: ExtraKey.CHANNEL_DOWN,
}


def vkey_to_mpkey(vkey: int, extended: bool) -> int:
    """Convert a virtual key code to a key code; 0 when the key is unknown.

    The extended flag marks the navigation cluster, the arrow keys and the
    numpad enter key, which tells them apart from the numpad keys.
    """
    if extended:
        mpkey = _VK_MAP_EXT.get(vkey, 0)
        if mpkey:
            return int(mpkey)
    return int(_VK_MAP.get(vkey, 0))


def appcmd_to_mpkey(appcmd: int) -> int:
    """Convert a WM_APPCOMMAND value to a key code; 0 when it is unknown."""
    return int(_APPCMD_MAP.get(appcmd, 0))