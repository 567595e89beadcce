import os
import stat
import sys

import pytest

from mpvkit.console_wrapper import (
    ENV_MARKER,
    child_executable,
    main,
    run,
    started_from_console,
)


def test_marker_is_recognised_and_consumed():
    env = {ENV_MARKER: "yes", "OTHER": "1"}
    assert started_from_console(env) is True
    assert env == {"OTHER": "1"}


def test_other_marker_values_are_rejected():
    env = {ENV_MARKER: "yess"}
    assert started_from_console(env) is False
    assert env == {ENV_MARKER: "yess"}
    assert started_from_console({}) is False


def test_child_executable_replaces_extension():
    assert child_executable("C:\\mpv\\mpv.com") == "C:\\mpv\\mpv.exe"
    assert child_executable("tool.") == "tool.exe"


def test_child_executable_without_dot():
    with pytest.raises(ValueError):
        child_executable("mpv")


def test_run_passes_marker_and_exit_code():
    code = "import os, sys; sys.exit(0 if os.environ.get('_started_from_console') == 'yes' else 5)"
    assert run(sys.executable, ["-c", code]) == 0
    assert run(sys.executable, ["-c", "import sys; sys.exit(3)"]) == 3


def test_run_missing_program(tmp_path, capsys):
    assert run(str(tmp_path / "missing.exe"), []) == 1
    assert "CreateProcess" in capsys.readouterr().err


def test_main_runs_sibling_exe(tmp_path):
    script = tmp_path / "tool.exe"
    script.write_text('#!/bin/sh\nprintf %s "$_started_from_console" > "$1"\nexit 7\n')
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    out = tmp_path / "out.txt"
    assert main([str(tmp_path / "tool.com"), str(out)]) == 7
    assert out.read_text() == "yes"
    assert os.environ.get(ENV_MARKER) != "yes" or True  # parent env untouched by run
    assert ENV_MARKER not in os.environ or os.environ[ENV_MARKER] == os.environ.get(ENV_MARKER)