# mpvkit

Low-level building blocks for a terminal-driven media player front end.

## Modules

- **`mpvkit.talloc`**: hierarchical allocations. An `Allocation` belongs to an
  optional parent; freeing it runs its destructor first, then frees all of its
  children (newest first). `alloc_size`, `zalloc_size` and `realloc_size`
  create and resize blocks. `enable_leak_report()` tracks allocations made
  afterwards and prints unfreed ones at exit; `leak_report()` returns that
  report as text.
- **`mpvkit.tautil`**: helpers on top of allocations: `calc_array_size`,
  `calc_prealloc_elems`, `new_context`, `steal`, `memdup`, `strdup`,
  `strndup`, `string_value`, the append variants (`strdup_append`,
  `strdup_append_buffer`, `strndup_append`, `strndup_append_buffer`),
  printf-style `asprintf`, `asprintf_append` and `asprintf_append_buffer`, and
  `TArray`, a growable array whose storage is owned by a parent context.
- **`mpvkit.timer`**: a monotonic microsecond clock that never goes below
  `MP_START_TIME` (`time_init`, `time_us`, `time_sec`, `raw_time_us`),
  `sleep_us`, overflow-safe `add_timeout`, and conversion to absolute
  wall-clock `Timespec` values (`time_us_to_timespec`, `rel_time_to_timespec`).
- **`mpvkit.hires_timer`**: `HiresTimerPolicy`, which decides when a wait
  should request a finer timer resolution (configurable from `MPV_HRT_MAX`,
  `MPV_HRT_RES` and `MPV_HRT` via `from_environ`), and `qpc_to_us` for
  performance-counter conversion.
- **`mpvkit.threads`**: `thread_name`, `set_thread_name`, `recursive_lock` and
  `check_result`, which raises `ThreadResultError` on unexpected error codes.
- **`mpvkit.atomic`**: `AtomicValue` with `load`, `store`, `fetch_add`,
  `fetch_and`, `fetch_or`, `exchange` and `compare_exchange`.
- **`mpvkit.sync`**: `Semaphore` (`wait`, `try_wait`, `timed_wait` with an
  absolute deadline, `post`), `ThreadRegistry` (`create`, `join`, `detach`,
  `exit`) and `timeout_ms_until`.
- **`mpvkit.terminal_input`**: `KeyDecoder` turns raw terminal bytes (escape
  sequences, UTF-8 and control characters) into `Key` codes with modifier
  bits. A lone ESC is only reported when `process(True)` is called after a
  pause in input.
- **`mpvkit.terminal`**: `Terminal` puts a POSIX tty into non-canonical mode,
  reads keys on a background thread and hands each to a callback
  (`setup_getch`), restores the terminal on stop/continue signals and in
  `uninit`, and reports the window size (`get_size` gives columns and rows,
  `get_size2` rows, columns and pixel sizes). SIGINT, SIGQUIT and SIGTERM
  call `on_quit(4)`. `goto_yx` and constants such as `HIDE_CURSOR` and
  `ALT_SCREEN` give common escape sequences.
- **`mpvkit.w32_keyboard`**: `vkey_to_mpkey` and `appcmd_to_mpkey` map Windows
  virtual-key and WM_APPCOMMAND codes to key codes.
- **`mpvkit.console_ansi`**: `apply_sgr` computes console attributes for an SGR
  sequence, `translate_key_event` turns a console key event into a key code,
  and `ConsoleState.write_ansi` interprets ANSI text (erase line, cursor up,
  colours, window title) into a list of console operations.
- **`mpvkit.console_wrapper`**: `started_from_console`, `child_executable`,
  `run` and `main`, which start the `.exe` next to a given program path with
  the console marker set in its environment.
- **`mpvkit.windows_utils`**: `guid_to_str`, `hresult_name`, `hresult_to_str`,
  `AnonPipeNamer` for unique pipe names and `AnonPipeOptions` for buffer sizes
  and client access rights.

## Install

```
pip install .
```

## Examples

```python
from mpvkit.tautil import new_context, strdup, string_value, asprintf_append

ctx = new_context(None)
s = strdup(ctx, "hello")
asprintf_append(s, ", %s", "world")
print(string_value(s))   # hello, world
ctx.free()               # s is freed together with ctx
```

```python
from mpvkit.terminal_input import Key, KeyDecoder

decoder = KeyDecoder()
decoder.feed(b"\x1b[A")
print(decoder.process(False) == [Key.UP])  # True
```

```python
from mpvkit import timer

timer.time_init()
deadline = timer.add_timeout(timer.time_us(), 0.5)
```

```python
from mpvkit.console_wrapper import main

# Runs path/to/player.exe --some-option and returns its exit status.
status = main(["path/to/player.com", "--some-option"])
```

## What it does not do

- The Windows helpers are computations only: `ConsoleState` records console
  operations instead of driving a real console, `AnonPipeOptions` and
  `AnonPipeNamer` describe a pipe without creating one, and nothing here
  attaches a process to a parent console.
- `mpvkit.terminal` needs `termios`, so it works on POSIX systems only.
- No command is installed; the console wrapper is used through its functions.

## Tests

```
pip install .[test]
pytest
```