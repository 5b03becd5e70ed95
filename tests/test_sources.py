import time

import pytest

from corekit.sources import (
    IDLE_FUNCS,
    TIMEOUT_FUNCS,
    IdleFuncs,
    SourceFuncs,
    TimeoutData,
    TimeoutFuncs,
    TimeVal,
    current_time,
)


def _usecs(tv):
    return tv.sec * 1_000_000 + tv.usec


def _later(tv, usecs):
    total = _usecs(tv) + usecs
    return TimeVal(total // 1_000_000, total % 1_000_000)


@pytest.mark.parametrize("interval", [0, 1, 250, 999, 1000, 1500, 61_234])
@pytest.mark.parametrize("usec", [0, 1, 499_999, 999_999])
def test_set_expiration_adds_interval(interval, usec):
    now = TimeVal(100, usec)
    data = TimeoutData(interval, lambda _: True)
    data.set_expiration(now)
    assert _usecs(data.expiration) - _usecs(now) == interval * 1000
    assert 0 <= data.expiration.usec < 1_000_000


def test_set_expiration_carries_into_seconds():
    data = TimeoutData(1500, lambda _: True)
    data.set_expiration(TimeVal(10, 600_000))
    assert data.expiration == TimeVal(12, 100_000)


def test_negative_interval_rejected():
    with pytest.raises(ValueError):
        TimeoutData(-1, lambda _: True)


def test_prepare_just_armed_waits_full_interval():
    now = TimeVal(50, 123_456)
    data = TimeoutData(300, lambda _: True)
    data.set_expiration(now)
    assert TIMEOUT_FUNCS.prepare(data, now, None) == (False, 300)


def test_prepare_after_expiry_is_ready():
    now = TimeVal(50, 0)
    data = TimeoutData(300, lambda _: True)
    data.set_expiration(now)
    assert TIMEOUT_FUNCS.prepare(data, _later(now, 400_000), None) == (True, 0)
    assert TIMEOUT_FUNCS.prepare(data, data.expiration, None) == (True, 0)


def test_prepare_sub_millisecond_remainder_counts_as_ready():
    now = TimeVal(50, 0)
    data = TimeoutData(10, lambda _: True)
    data.set_expiration(now)
    ready, timeout = TIMEOUT_FUNCS.prepare(data, _later(data.expiration, -500), None)
    assert (ready, timeout) == (True, 0)


def test_prepare_clock_moved_back_rearms():
    now = TimeVal(1000, 0)
    data = TimeoutData(200, lambda _: True)
    data.set_expiration(now)
    earlier = TimeVal(900, 0)
    assert TIMEOUT_FUNCS.prepare(data, earlier, None) == (False, 200)
    assert _usecs(data.expiration) - _usecs(earlier) == 200 * 1000


def test_prepare_zero_interval_ready_at_once():
    now = TimeVal(7, 7)
    data = TimeoutData(0, lambda _: True)
    data.set_expiration(now)
    assert TIMEOUT_FUNCS.prepare(data, now, None) == (True, 0)


def test_check_compares_with_expiration():
    now = TimeVal(20, 999_000)
    data = TimeoutData(5, lambda _: True)
    data.set_expiration(now)
    assert TIMEOUT_FUNCS.check(data, data.expiration, None) is True
    assert TIMEOUT_FUNCS.check(data, _later(data.expiration, -1), None) is False
    assert TIMEOUT_FUNCS.check(data, _later(data.expiration, 1), None) is True


def test_dispatch_true_rearms_from_dispatch_time():
    calls = []
    data = TimeoutData(40, lambda user: calls.append(user) or True)
    data.set_expiration(TimeVal(1, 0))
    dispatched_at = TimeVal(5, 250_000)
    assert TIMEOUT_FUNCS.dispatch(data, dispatched_at, "u") is True
    assert calls == ["u"]
    assert _usecs(data.expiration) - _usecs(dispatched_at) == 40 * 1000


def test_dispatch_false_keeps_expiration():
    data = TimeoutData(40, lambda user: False)
    data.set_expiration(TimeVal(1, 0))
    before = data.expiration
    assert TIMEOUT_FUNCS.dispatch(data, TimeVal(9, 0), None) is False
    assert data.expiration == before


def test_idle_funcs_always_ready_and_call_function():
    seen = []
    func = lambda user: seen.append(user) or len(seen) < 2
    now = current_time()
    assert IDLE_FUNCS.prepare(func, now, None) == (True, 0)
    assert IDLE_FUNCS.check(func, now, None) is True
    assert IDLE_FUNCS.dispatch(func, now, "x") is True
    assert IDLE_FUNCS.dispatch(func, now, "y") is False
    assert seen == ["x", "y"]


def test_singletons_are_of_their_kind():
    assert isinstance(TIMEOUT_FUNCS, TimeoutFuncs) and isinstance(IDLE_FUNCS, IdleFuncs)
    now = TimeVal(1, 0)
    data = TimeoutData(100, lambda _: True)
    data.set_expiration(now)
    assert TIMEOUT_FUNCS.prepare(data, now, None) == (False, 100)
    assert IDLE_FUNCS.prepare(None, now, None) == (True, 0)


def test_source_funcs_delegates_to_callables():
    log = []
    funcs = SourceFuncs(
        prepare=lambda data, now, user: (data == "ready", 17),
        check=lambda data, now, user: user == "go",
        dispatch=lambda data, now, user: log.append((data, user)) or True,
        destroy=log.append,
    )
    now = TimeVal(1, 2)
    assert funcs.prepare("ready", now, None) == (True, 17)
    assert funcs.check("d", now, "go") is True
    assert funcs.check("d", now, "stop") is False
    assert funcs.dispatch("d", now, "u") is True
    funcs.destroy("gone")
    assert log == [("d", "u"), "gone"]


def test_source_funcs_defaults():
    funcs = SourceFuncs()
    now = TimeVal(0, 0)
    assert funcs.prepare(None, now, None) == (False, -1)
    assert funcs.check(None, now, None) is False
    assert funcs.dispatch(None, now, None) is False


def test_current_time_matches_clock():
    before = time.time()
    now = current_time()
    after = time.time()
    assert 0 <= now.usec < 1_000_000
    assert before - 0.001 <= now.sec + now.usec / 1e6 <= after + 0.001