"""Terminal setup, key reading thread and size queries for POSIX terminals."""

from __future__ import annotations

import errno
import fcntl
import os
import select
import signal
import struct
import termios
import threading
from typing import Callable, Optional

from mpvkit.terminal_input import KeyDecoder
from mpvkit.threads import set_thread_name

HIDE_CURSOR = "\033[?25l"
RESTORE_CURSOR = "\033[?25h"
CLEAR_SCREEN = "\033[2J"
ALT_SCREEN = "\033[?1049h"
NORMAL_SCREEN = "\033[?1049l"

# Timeout in ms after which a lone (ambiguous) ESC is reported.
ESC_TIMEOUT_MS = 100
# Poll timeout in ms; the foreground state is re-checked before every wait.
INPUT_TIMEOUT_MS = 1000
# Exit code passed to on_quit when a termination signal arrives.
QUIT_EXIT_CODE = 4

_STDIN_FILENO = 0
_STDOUT_FILENO = 1
_STDERR_FILENO = 2

_WINSIZE = struct.Struct("HHHH")


def goto_yx(row: int, col: int) -> str:
    """Return the escape sequence moving the cursor to row, col."""
    return f"\033[{row};{col}f"


class Terminal:
    """Puts a terminal into key-reading mode and delivers decoded keys.

    By default /dev/tty is used (falling back to stdin/stdout). tty_in and
    tty_out may name descriptors to use instead; those are never closed here.
    Input is read only when both tty_in and stdout_fd are terminals.
    """

    def __init__(
        self,
        tty_in: Optional[int] = None,
        tty_out: Optional[int] = None,
        stdout_fd: int = _STDOUT_FILENO,
        on_quit: Optional[Callable[[int], None]] = None,
    ) -> None:
        self._given_in = tty_in
        self._given_out = tty_out
        self._stdout_fd = stdout_fd
        self._on_quit = on_quit
        self._tty_in = -1
        self._tty_out = -1
        self._owns_tty = False
        self._orig_attrs: Optional[list] = None
        self._active = False
        self._enabled = False
        self._read_terminal = False
        self._decoder = KeyDecoder()
        self._thread: Optional[threading.Thread] = None
        self._put_key: Optional[Callable[[int], None]] = None
        self._death_pipe: tuple[int, int] = (-1, -1)
        self._saved_handlers: dict[int, object] = {}

    # -- signal handling -------------------------------------------------

    def _install(self, signum: int, handler) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        if signum not in self._saved_handlers:
            self._saved_handlers[signum] = signal.getsignal(signum)
        signal.signal(signum, handler)

    def _restore_signals(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for signum, handler in self._saved_handlers.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._saved_handlers.clear()

    def _stop_handler(self, signum, frame) -> None:
        self._deactivate()
        signal.signal(signal.SIGTSTP, signal.SIG_DFL)
        os.kill(os.getpid(), signal.SIGTSTP)

    def _continue_handler(self, signum, frame) -> None:
        signal.signal(signal.SIGTSTP, self._stop_handler)
        self._poll_foreground()

    def _quit_handler(self, signum, frame) -> None:
        self._deactivate()
        # One-shot: the next such signal gets the earlier behaviour.
        previous = self._saved_handlers.get(signum, signal.SIG_DFL)
        signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        if self._death_pipe[1] >= 0:
            os.write(self._death_pipe[1], b"\x01")

    # -- terminal modes --------------------------------------------------

    def _enable_kx(self, enable: bool) -> None:
        if self._tty_out >= 0 and os.isatty(self._tty_out):
            os.write(self._tty_out, b"\033=" if enable else b"\033>")

    def _activate(self) -> None:
        if self._active or not self._read_terminal:
            return
        try:
            attrs = termios.tcgetattr(self._tty_in)
        except termios.error:
            return
        self._enable_kx(True)
        if self._orig_attrs is None:
            self._orig_attrs = [*attrs[:6], list(attrs[6])]
        attrs[3] &= ~(termios.ICANON | termios.ECHO)
        attrs[6][termios.VMIN] = 1
        attrs[6][termios.VTIME] = 0
        termios.tcsetattr(self._tty_in, termios.TCSANOW, attrs)
        self._active = True

    def _deactivate(self) -> None:
        if not self._active:
            return
        self._enable_kx(False)
        if self._orig_attrs is not None:
            try:
                termios.tcsetattr(self._tty_in, termios.TCSANOW, self._orig_attrs)
            except termios.error:
                pass
        self._active = False

    def _poll_foreground(self) -> None:
        if not self._enabled:
            return
        try:
            foreground = os.tcgetpgrp(self._tty_in) == os.getpgrp()
        except OSError:
            foreground = False
        if foreground:
            self._activate()
        else:
            self._deactivate()

    # -- public interface ------------------------------------------------

    def init(self) -> None:
        """Open the terminal and install handlers that keep its modes sane."""
        if self._enabled:
            raise RuntimeError("terminal is already initialised")
        self._enabled = True
        if self._given_in is not None:
            self._tty_in = self._given_in
            self._tty_out = self._given_out if self._given_out is not None else self._given_in
        else:
            try:
                fd = os.open("/dev/tty", os.O_RDWR | os.O_CLOEXEC)
            except OSError:
                self._tty_in, self._tty_out = _STDIN_FILENO, _STDOUT_FILENO
            else:
                self._tty_in = self._tty_out = fd
                self._owns_tty = True

        self._install(signal.SIGCONT, self._continue_handler)
        self._install(signal.SIGTSTP, self._stop_handler)
        self._install(signal.SIGTTIN, signal.SIG_IGN)
        self._install(signal.SIGTTOU, signal.SIG_IGN)

        self._poll_foreground()

    def setup_getch(self, put_key: Callable[[int], None]) -> None:
        """Start a thread that reads keys and passes each to put_key."""
        if not self._enabled or self._thread is not None:
            return
        try:
            self._death_pipe = os.pipe()
        except OSError:
            return

        self._read_terminal = os.isatty(self._tty_in) and os.isatty(self._stdout_fd)
        self._put_key = put_key

        thread = threading.Thread(target=self._run, name="terminal", daemon=True)
        try:
            thread.start()
        except RuntimeError:
            self._put_key = None
            self._close_death_pipe()
            self._close_tty()
            return
        self._thread = thread

        self._install(signal.SIGINT, self._quit_handler)
        self._install(signal.SIGQUIT, self._quit_handler)
        self._install(signal.SIGTERM, self._quit_handler)

    def uninit(self) -> None:
        """Undo init() and setup_getch()."""
        if not self._enabled:
            return
        self._restore_signals()

        if self._thread is not None:
            os.write(self._death_pipe[1], b"\x00")
            self._thread.join()
            self._close_death_pipe()
            self._thread = None
            self._put_key = None

        self._deactivate()
        self._close_tty()
        self._enabled = False
        self._read_terminal = False

    def in_background(self) -> bool:
        """Return whether the process has been moved to the background."""
        if not self._read_terminal:
            return False
        try:
            return os.tcgetpgrp(_STDERR_FILENO) != os.getpgrp()
        except OSError:
            return True

    def _winsize(self) -> Optional[tuple[int, int, int, int]]:
        try:
            raw = fcntl.ioctl(self._tty_in, termios.TIOCGWINSZ, bytes(_WINSIZE.size))
        except OSError:
            return None
        return _WINSIZE.unpack(raw)

    def get_size(self) -> Optional[tuple[int, int]]:
        """Return (columns, rows), or None if unknown."""
        ws = self._winsize()
        if ws is None:
            return None
        rows, cols, _, _ = ws
        if not rows or not cols:
            return None
        return cols, rows

    def get_size2(self) -> Optional[tuple[int, int, int, int]]:
        """Return (rows, columns, pixel width, pixel height), or None if unknown."""
        ws = self._winsize()
        if ws is None or not all(ws):
            return None
        rows, cols, px_width, px_height = ws
        return rows, cols, px_width, px_height

    # -- internals -------------------------------------------------------

    def _close_death_pipe(self) -> None:
        for fd in self._death_pipe:
            if fd >= 0:
                os.close(fd)
        self._death_pipe = (-1, -1)

    def _close_tty(self) -> None:
        if self._owns_tty and self._tty_in >= 0:
            os.close(self._tty_in)
        self._owns_tty = False
        self._tty_in = self._tty_out = -1

    def _dispatch(self, keys: list[int]) -> None:
        put_key = self._put_key
        if put_key is None:
            return
        for key in keys:
            put_key(key)

    def _run(self) -> None:
        set_thread_name("terminal")
        death_r = self._death_pipe[0]
        tty_in = self._tty_in
        stdin_ok = self._read_terminal
        while True:
            self._poll_foreground()
            poller = select.poll()
            poller.register(death_r, select.POLLIN)
            if stdin_ok:
                poller.register(tty_in, select.POLLIN)
            timeout = ESC_TIMEOUT_MS if self._decoder.pending else INPUT_TIMEOUT_MS
            try:
                events = poller.poll(timeout)
            except InterruptedError:
                continue
            revents = dict(events)
            if revents.get(death_r):
                break
            if stdin_ok and revents.get(tty_in):
                try:
                    data: Optional[bytes] = os.read(tty_in, self._decoder.space)
                except OSError as exc:
                    if exc.errno in (errno.EBADF, errno.EINVAL, errno.EIO):
                        break
                    data = None
                if data == b"":
                    break
                if data:
                    self._decoder.feed(data)
                    self._dispatch(self._decoder.process(False))
            if not events:
                self._dispatch(self._decoder.process(True))

        try:
            quit_byte = os.read(death_r, 1)
        except OSError:
            quit_byte = b""
        if quit_byte == b"\x01" and self._on_quit is not None:
            self._on_quit(QUIT_EXIT_CODE)