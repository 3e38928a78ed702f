"""Utility helpers for irmemo."""

import time
from typing import Hashable, Iterable, List, TypeVar

T = TypeVar('T', bound=Hashable)


class Timer:
    """High-resolution timer for pass statistics."""

    def __init__(self):
        self.start_ns = 0
        self.end_ns = 0

    def __enter__(self):
        self.start_ns = time.perf_counter_ns()
        return self

    def __exit__(self, *exc):
        self.end_ns = time.perf_counter_ns()

    @property
    def elapsed_ns(self) -> int:
        return self.end_ns - self.start_ns


def format_ns(ns: float) -> str:
    """Format nanoseconds into a human-readable string."""
    if ns < 1_000:
        return f"{ns:.0f} ns"
    elif ns < 1_000_000:
        return f"{ns / 1_000:.1f} µs"
    elif ns < 1_000_000_000:
        return f"{ns / 1_000_000:.2f} ms"
    else:
        return f"{ns / 1_000_000_000:.3f} s"


def stable_unique(items: Iterable[T]) -> List[T]:
    """Drop repeats, keeping first-seen order."""
    return list(dict.fromkeys(items))
