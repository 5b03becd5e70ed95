"""Spaced primes, levelled logging, n-ary trees, per-thread slots, an event main loop and shared-library file names."""

__version__ = "0.1.0"
__all__ = [
    "primes",
    "messages",
    "tree",
    "threadlocal",
    "sources",
    "mainloop",
    "modulepath",
]