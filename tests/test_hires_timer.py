import pytest

from mpvkit.hires_timer import HiresTimerPolicy, qpc_to_us


def test_default_perwait_on_windows10():
    policy = HiresTimerPolicy.from_environ({}, True)
    assert policy.start(10) == 1
    assert policy.start(0) == 0
    assert policy.start(51) == 0
    assert policy.permanent_resolution == 0


def test_auto_is_same_as_unset():
    auto = HiresTimerPolicy.from_environ({"MPV_HRT": "auto"}, True)
    unset = HiresTimerPolicy.from_environ({}, True)
    assert auto.hires_max == unset.hires_max
    assert auto.permanent_resolution == unset.permanent_resolution


def test_always_on_older_windows():
    policy = HiresTimerPolicy.from_environ({}, False)
    assert policy.start(10) == 0
    assert policy.permanent_resolution == policy.hires_res


def test_unknown_mode_acts_as_always():
    policy = HiresTimerPolicy.from_environ({"MPV_HRT": "bogus", "MPV_HRT_RES": "4"}, True)
    assert policy.permanent_resolution == 4
    assert policy.start(10) == 0


def test_never_mode():
    policy = HiresTimerPolicy.from_environ({"MPV_HRT": "never"}, False)
    assert policy.start(10) == 0
    assert policy.permanent_resolution == 0


def test_max_override():
    policy = HiresTimerPolicy.from_environ({"MPV_HRT_MAX": "200"}, True)
    assert policy.start(150) == policy.hires_res
    assert policy.start(201) == 0


def test_max_out_of_range_ignored():
    policy = HiresTimerPolicy.from_environ({"MPV_HRT_MAX": "5000"}, True)
    assert policy.hires_max == HiresTimerPolicy().hires_max


def test_res_override_and_range():
    assert HiresTimerPolicy.from_environ({"MPV_HRT_RES": "5"}, True).start(10) == 5
    ignored = HiresTimerPolicy.from_environ({"MPV_HRT_RES": "20"}, True)
    assert ignored.hires_res == HiresTimerPolicy().hires_res


def test_atoi_parsing_of_leading_digits():
    policy = HiresTimerPolicy.from_environ({"MPV_HRT_MAX": " 12abc"}, True)
    assert policy.hires_max == 12


def test_failed_request_returns_zero():
    policy = HiresTimerPolicy(begin_period=lambda res: False)
    assert policy.start(10) == 0


def test_end_releases_only_positive():
    released = []
    policy = HiresTimerPolicy(end_period=released.append)
    policy.end(0)
    policy.end(policy.start(10))
    assert released == [policy.hires_res]


def test_qpc_identity_at_microsecond_frequency():
    for count in (0, 1, 999_999, 123_456_789):
        assert qpc_to_us(count, 1_000_000) == count


def test_qpc_whole_seconds():
    freq = 10_000_000
    assert qpc_to_us(freq * 7, freq) == 7 * 1_000_000


def test_qpc_monotonic():
    freq = 3_579_545
    values = [qpc_to_us(c, freq) for c in range(0, 20 * freq, freq // 3)]
    assert values == sorted(values)


def test_qpc_rejects_zero_frequency():
    with pytest.raises(ValueError):
        qpc_to_us(5, 0)