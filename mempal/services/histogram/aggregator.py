"""Turn a raw mempool fee histogram into cumulative, color-coded rows."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .buckets import bucketize
from .models import VBYTES_PER_VMB, ColorBand, FeeSample, RangeEntry
from .ranges import PRECISE_OVERFLOW_FLOOR, build_ranges, format_range

LOGGER = logging.getLogger(__name__)

# Roughly one block's worth of vsize confirms per block.
RED_THRESHOLD_VMB = 1.5
YELLOW_THRESHOLD_VMB = 1.2


def aggregate(samples: Iterable[Sequence[float]], precise: bool) -> list[RangeEntry]:
    """Aggregate histogram rows into display entries, highest fee first.

    Args:
        samples: ``(fee_rate, size)`` rows as returned by ``/api/mempool``.
            Rows with fewer than two fields or non-numeric values are skipped.
        precise: Build data-driven decimal ranges instead of fixed buckets.
    """

    rows = normalize_samples(samples)
    if not rows:
        return []
    sized = precise_rows(rows) if precise else bucketize(rows)
    return accumulate(sized)


def normalize_samples(samples: Iterable[Sequence[float]]) -> list[FeeSample]:
    rows: list[FeeSample] = []
    skipped = 0
    for raw in samples:
        if len(raw) < 2:
            skipped += 1
            continue
        try:
            rows.append(FeeSample(float(raw[0]), float(raw[1])))
        except (TypeError, ValueError):
            skipped += 1
    if skipped:
        LOGGER.debug("Skipped %d malformed histogram rows", skipped)
    return rows


def precise_rows(rows: Iterable[FeeSample]) -> list[tuple[str, float]]:
    """Group by exact fee, build merged ranges and label them."""

    grouped: dict[float, float] = {}
    for fee, size in rows:
        grouped[fee] = grouped.get(fee, 0.0) + size

    zero_size = 0.0
    positive: list[FeeSample] = []
    for fee, size in grouped.items():
        if size <= 0:
            continue
        if fee <= 0:
            zero_size += size
        else:
            positive.append(FeeSample(fee, size))
    positive.sort(key=lambda sample: sample.fee_rate, reverse=True)

    ranges = build_ranges(positive)
    result: list[tuple[str, float]] = []
    for fee_range in ranges:
        label = format_range(fee_range.start, fee_range.end)
        if result and fee_range.start >= PRECISE_OVERFLOW_FLOOR and result[-1][0] == label:
            result[-1] = (label, result[-1][1] + fee_range.size)
            continue
        result.append((label, fee_range.size))

    if zero_size > 0:
        lowest_start = ranges[-1].start if ranges else 0.0
        label = format_range(0.0, lowest_start) if lowest_start > 0 else "0 - 0"
        result.append((label, zero_size))
    return result


def classify(cumulative_vmb: float) -> ColorBand:
    if cumulative_vmb > RED_THRESHOLD_VMB:
        return ColorBand.RED
    if cumulative_vmb > YELLOW_THRESHOLD_VMB:
        return ColorBand.YELLOW
    return ColorBand.GREEN


def accumulate(sized: Iterable[tuple[str, float]]) -> list[RangeEntry]:
    """Attach running vMB totals and color bands, preserving order."""

    running = 0.0
    entries: list[RangeEntry] = []
    for label, size in sized:
        running += size
        cumulative = running / VBYTES_PER_VMB
        entries.append(RangeEntry(label, size, cumulative, classify(cumulative)))
    return entries


__all__ = ["aggregate", "accumulate", "classify", "normalize_samples", "precise_rows"]
