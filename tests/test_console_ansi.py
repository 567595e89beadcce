from mpvkit.console_ansi import (
    BACKGROUND_ALL,
    BACKGROUND_BLUE,
    COMMON_LVB_REVERSE_VIDEO,
    COMMON_LVB_UNDERSCORE,
    ENHANCED_KEY,
    FOREGROUND_ALL,
    FOREGROUND_INTENSITY,
    FOREGROUND_RED,
    LEFT_CTRL_PRESSED,
    RIGHT_ALT_PRESSED,
    SHIFT_PRESSED,
    ConsoleState,
    apply_sgr,
    translate_key_event,
)
from mpvkit.terminal_input import Key
from mpvkit.w32_keyboard import VK

DEFAULT = FOREGROUND_ALL


def test_sgr_empty_resets():
    assert apply_sgr(FOREGROUND_RED | FOREGROUND_INTENSITY, [], DEFAULT) == DEFAULT
    assert apply_sgr(FOREGROUND_RED, [0], DEFAULT) == DEFAULT


def test_sgr_bold_and_normal():
    bold = apply_sgr(DEFAULT, [1], DEFAULT)
    assert bold == DEFAULT | FOREGROUND_INTENSITY
    assert apply_sgr(bold, [22], DEFAULT) == DEFAULT


def test_sgr_underline_reverse_round_trip():
    attr = apply_sgr(DEFAULT, [4, 7], DEFAULT)
    assert attr & COMMON_LVB_UNDERSCORE
    assert attr & COMMON_LVB_REVERSE_VIDEO
    assert apply_sgr(attr, [24, 27], DEFAULT) == DEFAULT


def test_sgr_foreground_red():
    assert apply_sgr(DEFAULT, [31], DEFAULT) == FOREGROUND_RED


def test_sgr_background_blue_and_reset():
    attr = apply_sgr(DEFAULT, [44], DEFAULT)
    assert attr & BACKGROUND_ALL == BACKGROUND_BLUE
    assert apply_sgr(attr, [49], DEFAULT) == DEFAULT


def test_sgr_default_foreground():
    attr = apply_sgr(DEFAULT, [31, 39], DEFAULT)
    assert attr == DEFAULT


def test_sgr_skips_256_colour_values():
    assert apply_sgr(DEFAULT, [38, 5, 1, 1], DEFAULT) == DEFAULT | FOREGROUND_INTENSITY


def test_sgr_skips_true_colour_values():
    assert apply_sgr(DEFAULT, [48, 2, 1, 22, 0, 1], DEFAULT) == DEFAULT | FOREGROUND_INTENSITY


def test_sgr_unknown_colour_mode_ignores_rest():
    assert apply_sgr(DEFAULT, [38, 9, 1], DEFAULT) == DEFAULT


def test_plain_text_is_written():
    console = ConsoleState()
    assert console.write_ansi("hello") == [("write", "hello")]
    assert console.cursor_x == len("hello")


def test_colour_sequence_sets_attributes():
    console = ConsoleState()
    ops = console.write_ansi("\033[31mred")
    assert ops == [("attributes", FOREGROUND_RED), ("write", "red")]
    assert console.attributes == FOREGROUND_RED


def test_unchanged_attributes_are_not_set():
    console = ConsoleState()
    assert console.write_ansi("\033[0mx") == [("write", "x")]


def test_erase_to_end_of_line():
    console = ConsoleState(width=10)
    ops = console.write_ansi("ab\033[K")
    assert ops[1] == ("fill", 2, 0, 10 - 2)
    assert ops[2] == ("cursor", 2, 0)


def test_cursor_up():
    console = ConsoleState()
    console.write_ansi("a\nb\033[A")
    assert (console.cursor_x, console.cursor_y) == (1, 0)


def test_title_with_bel():
    console = ConsoleState()
    ops = console.write_ansi("\033]2;My Title\007rest")
    assert console.title == "My Title"
    assert ops == [("title", "My Title"), ("write", "rest")]


def test_title_with_string_terminator():
    console = ConsoleState()
    console.write_ansi("\033]0;Name\033\\after")
    assert console.title == "Name"
    assert console.operations[-1] == ("write", "after")


def test_other_osc_is_ignored():
    console = ConsoleState()
    assert console.write_ansi("\033]7;x\007y") == [("write", "y")]
    assert console.title == ""


def test_bare_escape_drops_rest():
    console = ConsoleState()
    assert console.write_ansi("a\033xyz") == [("write", "a"), ("write", "\033")]


def test_native_vt_passes_through():
    console = ConsoleState(native_vt=True)
    text = "\033[31mred\033[0m"
    assert console.write_ansi(text) == [("write", text)]


def test_key_up_is_ignored():
    assert translate_key_event(VK.LEFT, ENHANCED_KEY, 0, False) is None


def test_special_key_with_modifiers():
    key = translate_key_event(VK.LEFT, ENHANCED_KEY | SHIFT_PRESSED, 0, True)
    assert key == Key.LEFT | Key.MOD_SHIFT


def test_character_key():
    assert translate_key_event(ord("A"), 0, "a", True) == ord("a")
    assert translate_key_event(ord("A"), RIGHT_ALT_PRESSED, "a", True) == ord("a") | Key.MOD_ALT


def test_ctrl_characters_are_shifted_back():
    assert translate_key_event(ord("A"), LEFT_CTRL_PRESSED, "\x01", True) == ord("a") | Key.MOD_CTRL
    shifted = translate_key_event(ord("A"), LEFT_CTRL_PRESSED | SHIFT_PRESSED, 1, True)
    assert shifted == ord("A") | Key.MOD_CTRL | Key.MOD_SHIFT


def test_control_character_without_ctrl_gives_nothing():
    assert translate_key_event(ord("A"), 0, "\x01", True) is None
    assert translate_key_event(0xFF, 0, "", True) is None