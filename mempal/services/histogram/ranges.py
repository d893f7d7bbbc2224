"""Precise-mode range construction.

Positive fee rates, sorted highest first, flow through four passes over an
owned list of :class:`FeeRange`:

1. :func:`greedy_merge` groups adjacent fees whose distance from the top of
   the current range is within a magnitude-dependent threshold.
2. :func:`absorb_singletons` folds zero-width ranges into their nearest
   neighbour.
3. :func:`expand_singletons` widens whatever zero-width range is left (only
   possible when it is the sole range).
4. :func:`close_overlaps` merges touching or overlapping neighbours until a
   full scan changes nothing.

Every pass preserves the total size and keeps the list ordered by ``start``
descending.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from .models import FeeRange, FeeSample

OVERLAP_TOLERANCE = 0.005
PRECISE_OVERFLOW_FLOOR = 5000


def merge_threshold(upper: float) -> float:
    """Maximum gap below a range's upper bound that still joins the range."""

    if upper >= 1000:
        return 50.0
    if upper >= 100:
        return 10.0
    if upper >= 10:
        return 2.0
    if upper >= 1:
        return 0.5
    return 0.05


def expansion_step(fee: float) -> float:
    if fee >= 100:
        return 1.0
    if fee >= 10:
        return 0.5
    if fee >= 1:
        return 0.1
    return 0.01


def greedy_merge(samples: Iterable[FeeSample]) -> list[FeeRange]:
    """Pass 1. ``samples`` must already be sorted by fee descending."""

    ranges: list[FeeRange] = []
    for fee, size in samples:
        if ranges:
            last = ranges[-1]
            if last.end - fee <= merge_threshold(last.end):
                last.absorb(FeeRange(fee, fee, size))
                continue
        ranges.append(FeeRange(fee, fee, size))
    return ranges


def absorb_singletons(ranges: list[FeeRange]) -> list[FeeRange]:
    """Pass 2. Fold zero-width ranges into the closer neighbour, in place.

    ``ranges[i - 1]`` holds higher fees and ``ranges[i + 1]`` lower fees.
    Ties go to the lower neighbour so boundaries do not creep upward.
    """

    changed = True
    while changed and len(ranges) > 1:
        changed = False
        i = 0
        while i < len(ranges):
            current = ranges[i]
            if not current.is_singleton or len(ranges) == 1:
                i += 1
                continue
            higher = ranges[i - 1] if i > 0 else None
            lower = ranges[i + 1] if i + 1 < len(ranges) else None
            gap_higher = higher.start - current.end if higher is not None else math.inf
            gap_lower = current.start - lower.end if lower is not None else math.inf

            if lower is not None and gap_lower <= gap_higher:
                lower.absorb(current)
            elif higher is not None:
                higher.absorb(current)
            else:
                i += 1
                continue
            del ranges[i]
            changed = True
    return ranges


def expand_singletons(ranges: list[FeeRange]) -> list[FeeRange]:
    """Pass 3. Widen zero-width ranges to clean epsilon-aligned bounds."""

    for current in ranges:
        if not current.is_singleton:
            continue
        step = expansion_step(current.start)
        lower = math.floor(current.start / step) * step
        upper = math.ceil(current.start / step) * step
        current.start = lower
        current.end = upper + step if lower == upper else upper
    return ranges


def close_overlaps(ranges: list[FeeRange]) -> list[FeeRange]:
    """Pass 4. Merge touching or overlapping neighbours to a fixed point.

    Each merge removes an element, so the loop ends after at most
    ``len(ranges)`` productive scans.
    """

    merged = True
    while merged:
        merged = False
        i = len(ranges) - 1
        while i > 0:
            lower = ranges[i]
            higher = ranges[i - 1]
            if lower.end >= higher.start - OVERLAP_TOLERANCE:
                higher.absorb(lower)
                del ranges[i]
                merged = True
            i -= 1
    return ranges


def build_ranges(samples: Sequence[FeeSample]) -> list[FeeRange]:
    """Run all four passes over positive-fee samples sorted highest first."""

    ranges = greedy_merge(samples)
    absorb_singletons(ranges)
    expand_singletons(ranges)
    close_overlaps(ranges)
    return ranges


def format_range(start: float, end: float) -> str:
    if start >= PRECISE_OVERFLOW_FLOOR:
        return "5000+"
    return f"{start:.2f} - {end:.2f}"


__all__ = [
    "OVERLAP_TOLERANCE",
    "merge_threshold",
    "expansion_step",
    "greedy_merge",
    "absorb_singletons",
    "expand_singletons",
    "close_overlaps",
    "build_ranges",
    "format_range",
]
