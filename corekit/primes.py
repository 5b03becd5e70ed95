"""Spaced prime numbers for sizing hash tables."""

from __future__ import annotations

from bisect import bisect_right

__all__ = ["SPACED_PRIMES", "spaced_primes_closest"]

SPACED_PRIMES: tuple[int, ...] = (
    11,
    19,
    37,
    73,
    109,
    163,
    251,
    367,
    557,
    823,
    1237,
    1861,
    2777,
    4177,
    6247,
    9371,
    14057,
    21089,
    31627,
    47431,
    71143,
    106721,
    160073,
    240101,
    360163,
    540217,
    810343,
    1215497,
    1823231,
    2734867,
    4102283,
    6153409,
    9230113,
    13845163,
)


def spaced_primes_closest(num: int) -> int:
    """Return the smallest table prime greater than ``num``.

    Numbers at or beyond the largest prime in the table get that prime.
    """
    index = bisect_right(SPACED_PRIMES, num)
    if index < len(SPACED_PRIMES):
        return SPACED_PRIMES[index]
    return SPACED_PRIMES[-1]