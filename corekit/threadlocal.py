"""Per-thread values keyed by shared keys, with destroy notifications."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

__all__ = ["StaticPrivate", "release_thread_data"]

DestroyNotify = Callable[[Any], None]

_index_lock = threading.Lock()
_next_index = 0
_local = threading.local()


@dataclass
class _Slot:
    data: Any = None
    destroy: Optional[DestroyNotify] = None


class _ThreadSlots:
    """The values one thread holds for every key it has set."""

    def __init__(self) -> None:
        self.slots: list[_Slot] = []

    def release(self) -> None:
        slots, self.slots = self.slots, []
        for slot in slots:
            if slot.destroy is not None:
                slot.destroy(slot.data)

    def __del__(self) -> None:
        self.release()


def _thread_slots(create: bool) -> Optional[_ThreadSlots]:
    holder = getattr(_local, "slots", None)
    if holder is None and create:
        holder = _local.slots = _ThreadSlots()
    return holder


class StaticPrivate:
    """A key under which each thread keeps its own value.

    The key gets its index the first time any thread sets a value.
    """

    __slots__ = ("_index",)

    def __init__(self) -> None:
        self._index = 0

    def get(self) -> Any:
        """Return this thread's value for the key, or None if it has none."""
        holder = _thread_slots(create=False)
        if holder is None or not self._index or self._index > len(holder.slots):
            return None
        return holder.slots[self._index - 1].data

    def set(self, data: Any, notify: Optional[DestroyNotify] = None) -> None:
        """Store ``data`` for this thread.

        A value replaced here has its own notify called with it, after the
        new value is in place.
        """
        global _next_index
        holder = _thread_slots(create=True)
        if not self._index:
            with _index_lock:
                if not self._index:
                    _next_index += 1
                    self._index = _next_index
        while len(holder.slots) < self._index:
            holder.slots.append(_Slot())
        slot = holder.slots[self._index - 1]
        old_data, old_destroy = slot.data, slot.destroy
        slot.data = data
        slot.destroy = notify
        if old_destroy is not None:
            old_destroy(old_data)


def release_thread_data() -> None:
    """Drop every value the calling thread holds, calling their notifies.

    This also happens on its own when a thread's local storage goes away.
    """
    holder = _thread_slots(create=False)
    if holder is None:
        return
    del _local.slots
    holder.release()