"""Event source behaviours: the prepare/check/dispatch protocol, timeouts and idles."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, NamedTuple, Optional

__all__ = [
    "TimeVal",
    "SourceFuncs",
    "TimeoutData",
    "TimeoutFuncs",
    "IdleFuncs",
    "TIMEOUT_FUNCS",
    "IDLE_FUNCS",
    "current_time",
]

SourceFunc = Callable[[Any], bool]


class TimeVal(NamedTuple):
    """A point in time as whole seconds and microseconds."""

    sec: int
    usec: int


def current_time() -> TimeVal:
    """Return the wall-clock time."""
    now = time.time_ns()
    return TimeVal(now // 1_000_000_000, (now % 1_000_000_000) // 1000)


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


class SourceFuncs:
    """How a main loop drives one kind of source.

    Any of the four behaviours may be given as a callable; subclasses may
    override the methods instead.
    """

    def __init__(
        self,
        prepare: Optional[Callable[[Any, TimeVal, Any], tuple[bool, int]]] = None,
        check: Optional[Callable[[Any, TimeVal, Any], bool]] = None,
        dispatch: Optional[Callable[[Any, TimeVal, Any], bool]] = None,
        destroy: Optional[Callable[[Any], None]] = None,
    ) -> None:
        self._prepare = prepare
        self._check = check
        self._dispatch = dispatch
        self._destroy = destroy

    def prepare(self, source_data: Any, current_time: TimeVal, user_data: Any) -> tuple[bool, int]:
        """Return (ready, timeout in ms); a timeout of -1 sets no limit."""
        if self._prepare is None:
            return False, -1
        ready, timeout = self._prepare(source_data, current_time, user_data)
        return bool(ready), int(timeout)

    def check(self, source_data: Any, current_time: TimeVal, user_data: Any) -> bool:
        """Return True if the source should be dispatched after polling."""
        if self._check is None:
            return False
        return bool(self._check(source_data, current_time, user_data))

    def dispatch(self, source_data: Any, dispatch_time: TimeVal, user_data: Any) -> bool:
        """Run the source; return False to have it removed."""
        if self._dispatch is None:
            return False
        return bool(self._dispatch(source_data, dispatch_time, user_data))

    def destroy(self, source_data: Any) -> None:
        """Release ``source_data`` once the source has been removed."""
        if self._destroy is not None:
            self._destroy(source_data)


@dataclass
class TimeoutData:
    """A repeating timeout: its interval in ms, callback and next expiry."""

    interval: int
    callback: SourceFunc
    expiration: TimeVal = field(default_factory=lambda: TimeVal(0, 0))

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ValueError("interval must not be negative")

    def set_expiration(self, current_time: TimeVal) -> None:
        """Set the expiry to ``interval`` milliseconds after ``current_time``."""
        seconds, msecs = divmod(self.interval, 1000)
        sec = current_time.sec + seconds
        usec = current_time.usec + msecs * 1000
        if usec >= 1_000_000:
            usec -= 1_000_000
            sec += 1
        self.expiration = TimeVal(sec, usec)


class TimeoutFuncs(SourceFuncs):
    """Source behaviour for TimeoutData."""

    def prepare(self, source_data: TimeoutData, current_time: TimeVal, user_data: Any) -> tuple[bool, int]:
        expiration = source_data.expiration
        msec = (expiration.sec - current_time.sec) * 1000 + _trunc_div(
            expiration.usec - current_time.usec, 1000
        )
        if msec < 0:
            msec = 0
        elif msec > source_data.interval:
            # The clock went backwards; re-arm rather than wait a long time.
            source_data.set_expiration(current_time)
            msec = source_data.interval
        return msec == 0, msec

    def check(self, source_data: TimeoutData, current_time: TimeVal, user_data: Any) -> bool:
        return source_data.expiration <= current_time

    def dispatch(self, source_data: TimeoutData, dispatch_time: TimeVal, user_data: Any) -> bool:
        if source_data.callback(user_data):
            source_data.set_expiration(dispatch_time)
            return True
        return False

    def destroy(self, source_data: Any) -> None:
        return None


class IdleFuncs(SourceFuncs):
    """Source behaviour for idle functions: always ready.

    The source data is the function itself, called with the user data.
    """

    def prepare(self, source_data: SourceFunc, current_time: TimeVal, user_data: Any) -> tuple[bool, int]:
        return True, 0

    def check(self, source_data: SourceFunc, current_time: TimeVal, user_data: Any) -> bool:
        return True

    def dispatch(self, source_data: SourceFunc, dispatch_time: TimeVal, user_data: Any) -> bool:
        return bool(source_data(user_data))

    def destroy(self, source_data: Any) -> None:
        return None


TIMEOUT_FUNCS = TimeoutFuncs()
IDLE_FUNCS = IdleFuncs()