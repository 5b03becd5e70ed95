"""A priority-ordered main loop driving event sources and polled descriptors."""

from __future__ import annotations

import select
import socket
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import IntFlag
from typing import Any, Callable, Iterator, Optional, Sequence

from .messages import warning
from .sources import (
    IDLE_FUNCS,
    TIMEOUT_FUNCS,
    SourceFuncs,
    TimeoutData,
    TimeVal,
    current_time,
)

__all__ = [
    "IOCondition",
    "PollFD",
    "select_poll",
    "MainContext",
    "MainLoop",
    "PRIORITY_HIGH",
    "PRIORITY_DEFAULT",
    "PRIORITY_HIGH_IDLE",
    "PRIORITY_DEFAULT_IDLE",
    "PRIORITY_LOW",
]

PRIORITY_HIGH = -100
PRIORITY_DEFAULT = 0
PRIORITY_HIGH_IDLE = 100
PRIORITY_DEFAULT_IDLE = 200
PRIORITY_LOW = 300

DestroyNotify = Callable[[Any], None]


class IOCondition(IntFlag):
    """Conditions a polled descriptor can wait for or report."""

    IN = 1
    PRI = 2
    OUT = 4
    ERR = 8
    HUP = 16
    NVAL = 32


@dataclass(eq=False)
class PollFD:
    """A descriptor, the conditions wanted and the conditions reported."""

    fd: int
    events: int = 0
    revents: int = 0


PollFunc = Callable[[Sequence[PollFD], int], int]


def select_poll(fds: Sequence[PollFD], timeout: int) -> int:
    """Wait on ``fds`` with select(); ``timeout`` in ms, -1 waits forever.

    Returns the number of conditions found and fills in ``revents``.
    """
    rset: list[int] = []
    wset: list[int] = []
    xset: list[int] = []
    for f in fds:
        if f.fd < 0:
            continue
        if f.events & IOCondition.IN:
            rset.append(f.fd)
        if f.events & IOCondition.OUT:
            wset.append(f.fd)
        if f.events & IOCondition.PRI:
            xset.append(f.fd)

    seconds = None if timeout < 0 else timeout / 1000
    if not (rset or wset or xset):
        if seconds is None:
            raise ValueError("nothing to wait for and no timeout")
        time.sleep(seconds)
        return 0

    readable, writable, exceptional = select.select(rset, wset, xset, seconds)
    ready = len(readable) + len(writable) + len(exceptional)
    if ready > 0:
        r, w, x = set(readable), set(writable), set(exceptional)
        for f in fds:
            f.revents = 0
            if f.fd >= 0:
                if f.fd in r:
                    f.revents |= IOCondition.IN
                if f.fd in w:
                    f.revents |= IOCondition.OUT
                if f.fd in x:
                    f.revents |= IOCondition.PRI
    return ready


_NATIVE = (
    (IOCondition.IN, getattr(select, "POLLIN", 0)),
    (IOCondition.PRI, getattr(select, "POLLPRI", 0)),
    (IOCondition.OUT, getattr(select, "POLLOUT", 0)),
    (IOCondition.ERR, getattr(select, "POLLERR", 0)),
    (IOCondition.HUP, getattr(select, "POLLHUP", 0)),
    (IOCondition.NVAL, getattr(select, "POLLNVAL", 0)),
)


def _native_poll(fds: Sequence[PollFD], timeout: int) -> int:
    wanted: dict[int, int] = {}
    for f in fds:
        if f.fd >= 0:
            wanted[f.fd] = wanted.get(f.fd, 0) | int(f.events)
    poller = select.poll()
    for fd, events in wanted.items():
        poller.register(fd, sum(native for cond, native in _NATIVE if events & cond))
    results = poller.poll(None if timeout < 0 else timeout)
    reported: dict[int, int] = {}
    for fd, mask in results:
        conditions = sum(int(cond) for cond, native in _NATIVE if native and mask & native)
        reported[fd] = reported.get(fd, 0) | conditions
    always = IOCondition.ERR | IOCondition.HUP | IOCondition.NVAL
    for f in fds:
        f.revents = reported.get(f.fd, 0) & (int(f.events) | always) if f.fd >= 0 else 0
    return len(results)


_DEFAULT_POLL: PollFunc = _native_poll if hasattr(select, "poll") else select_poll


@dataclass(eq=False)
class _Source:
    tag: int
    priority: int
    funcs: SourceFuncs
    source_data: Any
    user_data: Any
    notify: Optional[DestroyNotify]
    can_recurse: bool
    valid: bool = True
    in_call: bool = False
    ready: bool = False
    refs: int = 1

    @property
    def skipped(self) -> bool:
        return self.in_call and not self.can_recurse


def _same(a: Any, b: Any) -> bool:
    return a is b or bool(a == b)


class MainContext:
    """Sources ordered by priority, polled descriptors, and the iteration logic."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sources: list[_Source] = []
        self._by_tag: dict[int, _Source] = {}
        self._next_tag = 1
        self._pending: list[_Source] = []
        self._in_check_or_prepare = 0
        self._poll_records: list[tuple[int, PollFD]] = []
        self._poll_func: PollFunc = _DEFAULT_POLL
        self._wake_read: Optional[socket.socket] = None
        self._wake_write: Optional[socket.socket] = None
        self._wake_rec: Optional[PollFD] = None
        self._poll_waiting = False
        self._poll_changed = False

    @contextmanager
    def _unlocked(self) -> Iterator[None]:
        self._lock.release()
        try:
            yield
        finally:
            self._lock.acquire()

    # --- sources ---------------------------------------------------------

    def add(
        self,
        priority: int,
        can_recurse: bool,
        funcs: SourceFuncs,
        source_data: Any,
        user_data: Any = None,
        notify: Optional[DestroyNotify] = None,
    ) -> int:
        """Add a source; return its tag. Equal priorities keep insertion order."""
        with self._lock:
            source = _Source(
                self._next_tag, priority, funcs, source_data, user_data, notify, bool(can_recurse)
            )
            self._next_tag += 1
            index = next(
                (i for i, other in enumerate(self._sources) if priority < other.priority),
                len(self._sources),
            )
            self._sources.insert(index, source)
            self._by_tag[source.tag] = source
            self._wakeup()
            return source.tag

    def _destroy_link(self, source: _Source) -> None:
        if not source.valid:
            return
        source.valid = False
        self._sources.remove(source)
        self._by_tag.pop(source.tag, None)
        self._unref(source)

    def _unref(self, source: _Source) -> None:
        source.refs -= 1
        if source.refs == 0:
            with self._unlocked():
                if source.notify is not None:
                    source.notify(source.user_data)
                source.funcs.destroy(source.source_data)

    def _remove_first(self, match: Callable[[_Source], bool]) -> bool:
        with self._lock:
            source = next((s for s in self._sources if s.valid and match(s)), None)
            if source is not None:
                self._destroy_link(source)
        return source is not None

    def remove(self, tag: int) -> bool:
        """Remove the source with ``tag``; return whether it existed."""
        if tag <= 0:
            raise ValueError("tag must be positive")
        with self._lock:
            source = self._by_tag.get(tag)
            if source is not None:
                self._destroy_link(source)
        return source is not None

    def remove_by_user_data(self, user_data: Any) -> bool:
        """Remove the first source whose user data matches."""
        return self._remove_first(lambda s: _same(s.user_data, user_data))

    def remove_by_source_data(self, source_data: Any) -> bool:
        """Remove the first source whose source data matches."""
        return self._remove_first(lambda s: _same(s.source_data, source_data))

    def remove_by_funcs_user_data(self, funcs: SourceFuncs, user_data: Any) -> bool:
        """Remove the first source with these funcs and matching user data."""
        if funcs is None:
            raise ValueError("funcs must not be None")
        return self._remove_first(lambda s: s.funcs is funcs and _same(s.user_data, user_data))

    def timeout_add(
        self,
        interval: int,
        function: Callable[[Any], bool],
        data: Any = None,
        priority: int = PRIORITY_DEFAULT,
        notify: Optional[DestroyNotify] = None,
    ) -> int:
        """Call ``function(data)`` every ``interval`` ms while it returns True."""
        timeout = TimeoutData(interval, function)
        timeout.set_expiration(current_time())
        return self.add(priority, False, TIMEOUT_FUNCS, timeout, data, notify)

    def idle_add(
        self,
        function: Callable[[Any], bool],
        data: Any = None,
        priority: int = PRIORITY_DEFAULT_IDLE,
        notify: Optional[DestroyNotify] = None,
    ) -> int:
        """Call ``function(data)`` whenever nothing of higher priority is ready."""
        if function is None:
            raise ValueError("function must not be None")
        return self.add(priority, False, IDLE_FUNCS, function, data, notify)

    def idle_remove_by_data(self, data: Any) -> bool:
        """Remove the first idle function registered with ``data``."""
        return self.remove_by_funcs_user_data(IDLE_FUNCS, data)

    # --- iteration -------------------------------------------------------

    def pending(self) -> bool:
        """Return True if some source is ready to be dispatched."""
        if self._in_check_or_prepare:
            return False
        return self._iterate(False, False)

    def iteration(self, block: bool) -> bool:
        """Run one iteration; return True if anything was dispatched."""
        if self._in_check_or_prepare:
            warning(
                "g_main_iteration(): called recursively from within a source's check() or "
                "prepare() member or from a second thread, iteration not possible"
            )
            return False
        return self._iterate(bool(block), True)

    def _dispatch(self, dispatch_time: TimeVal) -> None:
        while self._pending:
            source = self._pending.pop(0)
            try:
                if source.valid:
                    was_in_call = source.in_call
                    source.in_call = True
                    try:
                        with self._unlocked():
                            keep = source.funcs.dispatch(
                                source.source_data, dispatch_time, source.user_data
                            )
                    finally:
                        if not was_in_call:
                            source.in_call = False
                    if not keep and source.valid:
                        self._destroy_link(source)
            finally:
                self._unref(source)

    def _iterate(self, block: bool, dispatch: bool) -> bool:
        now = current_time()
        with self._lock:
            if self._poll_waiting:
                with self._unlocked():
                    warning("g_main_iterate(): main loop already active in another thread")
                return False

            if self._pending:
                if dispatch:
                    self._dispatch(now)
                return True

            timeout = -1 if block else 0
            n_ready = 0
            current_priority = 0

            for source in list(self._sources):
                if not source.valid:
                    continue
                if n_ready > 0 and source.priority > current_priority:
                    break
                if source.skipped:
                    continue
                source_timeout = -1
                if not source.ready:
                    self._in_check_or_prepare += 1
                    try:
                        with self._unlocked():
                            ready, source_timeout = source.funcs.prepare(
                                source.source_data, now, source.user_data
                            )
                    finally:
                        self._in_check_or_prepare -= 1
                    if ready:
                        source.ready = True
                if source.ready:
                    if not dispatch:
                        return True
                    n_ready += 1
                    current_priority = source.priority
                    timeout = 0
                if source_timeout >= 0:
                    timeout = source_timeout if timeout < 0 else min(timeout, source_timeout)

            self._poll(timeout, n_ready > 0, current_priority)
            if timeout != 0:
                now = current_time()

            n_ready = 0
            for source in list(self._sources):
                if not source.valid:
                    continue
                if n_ready > 0 and source.priority > current_priority:
                    break
                if source.skipped:
                    continue
                if not source.ready:
                    self._in_check_or_prepare += 1
                    try:
                        with self._unlocked():
                            ready = source.funcs.check(source.source_data, now, source.user_data)
                    finally:
                        self._in_check_or_prepare -= 1
                    if ready:
                        source.ready = True
                if source.ready:
                    if not dispatch:
                        return True
                    source.ready = False
                    source.refs += 1
                    self._pending.append(source)
                    current_priority = source.priority
                    n_ready += 1

            if self._pending:
                self._dispatch(now)
                return True
            return False

    # --- polling ---------------------------------------------------------

    def _poll(self, timeout: int, use_priority: bool, priority: int) -> None:
        if self._wake_read is None:
            reader, writer = socket.socketpair()
            reader.setblocking(False)
            writer.setblocking(False)
            self._wake_read, self._wake_write = reader, writer
            self._wake_rec = PollFD(reader.fileno(), IOCondition.IN)
            self._add_poll_unlocked(0, self._wake_rec)

        masked = ~int(IOCondition.ERR | IOCondition.HUP | IOCondition.NVAL)
        polled: list[tuple[PollFD, PollFD]] = []
        for rec_priority, rec in self._poll_records:
            if use_priority and priority < rec_priority:
                break
            if rec.events:
                polled.append((rec, PollFD(rec.fd, int(rec.events) & masked, 0)))

        self._poll_waiting = True
        self._poll_changed = False

        if polled or timeout != 0:
            func = self._poll_func
            with self._unlocked():
                func([copy for _, copy in polled], timeout)

        if not self._poll_waiting:
            try:
                self._wake_read.recv(1)
            except (BlockingIOError, InterruptedError):
                pass
        else:
            self._poll_waiting = False

        if self._poll_changed:
            return
        for rec, copy in polled:
            rec.revents = copy.revents

    def add_poll(self, fd: PollFD, priority: int = PRIORITY_DEFAULT) -> None:
        """Poll ``fd`` in every iteration at ``priority``."""
        with self._lock:
            self._add_poll_unlocked(priority, fd)

    def _add_poll_unlocked(self, priority: int, fd: PollFD) -> None:
        fd.revents = 0
        index = next(
            (i for i, (p, _) in enumerate(self._poll_records) if priority < p),
            len(self._poll_records),
        )
        self._poll_records.insert(index, (priority, fd))
        self._poll_changed = True
        self._wakeup()

    def remove_poll(self, fd: PollFD) -> None:
        """Stop polling ``fd``."""
        with self._lock:
            for index, (_, rec) in enumerate(self._poll_records):
                if rec is fd:
                    del self._poll_records[index]
                    break
            self._poll_changed = True
            self._wakeup()

    def set_poll_func(self, func: Optional[PollFunc]) -> None:
        """Replace the function that waits on descriptors; None restores the default."""
        self._poll_func = func if func is not None else _DEFAULT_POLL

    def _wakeup(self) -> None:
        if self._poll_waiting and self._wake_write is not None:
            self._poll_waiting = False
            try:
                self._wake_write.send(b"A")
            except (BlockingIOError, InterruptedError):
                pass


_default_context: Optional[MainContext] = None
_default_lock = threading.Lock()


def _shared_context() -> MainContext:
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = MainContext()
        return _default_context


class MainLoop:
    """Runs iterations of a context until told to quit."""

    def __init__(self, context: Optional[MainContext] = None, is_running: bool = False) -> None:
        self.context = context if context is not None else _shared_context()
        self._running = bool(is_running)

    def run(self) -> None:
        """Iterate, blocking, until quit() is called."""
        if self.context._in_check_or_prepare:
            warning(
                "g_main_run(): called recursively from within a source's check() or "
                "prepare() member or from a second thread, iteration not possible"
            )
            return
        self._running = True
        while self._running:
            self.context._iterate(True, True)

    def quit(self) -> None:
        """Make run() return after the current iteration."""
        self._running = False

    def is_running(self) -> bool:
        return self._running