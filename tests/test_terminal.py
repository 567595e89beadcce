import fcntl
import os
import pty
import signal
import struct
import termios
import threading
import time

import pytest

from mpvkit.terminal import QUIT_EXIT_CODE, Terminal, goto_yx
from mpvkit.terminal_input import Key


@pytest.fixture
def pty_pair():
    master, slave = pty.openpty()
    yield master, slave
    os.close(master)
    os.close(slave)


def set_winsize(fd, rows, cols, xpix=0, ypix=0):
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", rows, cols, xpix, ypix))


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_goto_yx():
    assert goto_yx(3, 5) == "\033[3;5f"


def test_get_size(pty_pair):
    master, slave = pty_pair
    set_winsize(slave, 24, 80)
    term = Terminal(tty_in=slave, tty_out=slave)
    term.init()
    try:
        assert term.get_size() == (80, 24)
        assert term.get_size2() is None
    finally:
        term.uninit()


def test_get_size2_with_pixels(pty_pair):
    master, slave = pty_pair
    set_winsize(slave, 30, 100, 1000, 600)
    term = Terminal(tty_in=slave, tty_out=slave)
    term.init()
    try:
        assert term.get_size2() == (30, 100, 1000, 600)
    finally:
        term.uninit()


def test_double_init_raises(pty_pair):
    master, slave = pty_pair
    term = Terminal(tty_in=slave, tty_out=slave)
    term.init()
    try:
        with pytest.raises(RuntimeError):
            term.init()
    finally:
        term.uninit()


def test_uninit_restores_signal_handlers(pty_pair):
    master, slave = pty_pair
    before = signal.getsignal(signal.SIGTSTP)
    term = Terminal(tty_in=slave, tty_out=slave)
    term.init()
    term.uninit()
    assert signal.getsignal(signal.SIGTSTP) == before
    assert term.in_background() is False


def test_not_in_background_without_reading(pty_pair):
    master, slave = pty_pair
    term = Terminal(tty_in=slave, tty_out=slave)
    term.init()
    try:
        assert term.in_background() is False
    finally:
        term.uninit()


def test_reads_keys_from_terminal(pty_pair):
    master, slave = pty_pair
    keys = []
    lock = threading.Lock()

    def put_key(key):
        with lock:
            keys.append(key)

    term = Terminal(tty_in=slave, tty_out=slave, stdout_fd=slave)
    term.init()
    try:
        term.setup_getch(put_key)
        os.write(master, b"q\n")
        assert wait_for(lambda: len(keys) >= 2)
    finally:
        term.uninit()
    assert keys[:2] == [ord("q"), Key.ENTER]
    assert term.in_background() is False


def test_termination_signal_requests_quit(pty_pair):
    master, slave = pty_pair
    codes = []
    done = threading.Event()

    def on_quit(code):
        codes.append(code)
        done.set()

    term = Terminal(tty_in=slave, tty_out=slave, stdout_fd=slave, on_quit=on_quit)
    term.init()
    try:
        term.setup_getch(lambda key: None)
        os.kill(os.getpid(), signal.SIGTERM)
        assert done.wait(5.0)
    finally:
        term.uninit()
    assert codes == [QUIT_EXIT_CODE]
    assert term.in_background() is False