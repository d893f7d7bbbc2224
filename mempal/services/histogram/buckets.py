"""Fixed-edge buckets used when precise fees are disabled."""

from __future__ import annotations

from typing import Iterable

from .models import FeeSample

OVERFLOW_LABEL = "5000+"
ZERO_LABEL = "0"
OVERFLOW_FLOOR = 5000

# (lower bound, bucket width), checked top-down
_BUCKET_WIDTHS = (
    (2000, 200),
    (1000, 100),
    (100, 10),
)


def bucket_label(fee: float) -> str:
    """Return the bucket label a fee rate falls into."""

    if fee >= OVERFLOW_FLOOR:
        return OVERFLOW_LABEL
    for floor, width in _BUCKET_WIDTHS:
        if fee >= floor:
            lower = int(fee / width) * width
            return f"{lower} - {lower + width}"
    if fee <= 0:
        return ZERO_LABEL
    lower = int(fee)
    return f"{lower} - {lower + 1}"


def bucket_bounds(label: str) -> tuple[float, float]:
    """Return the numeric (lower, upper) bounds encoded in a bucket label."""

    if label.endswith("+"):
        lower = float(label[:-1])
        return lower, lower
    if " - " not in label:
        value = float(label)
        return value, value
    lower, upper = label.split(" - ", 1)
    return float(lower), float(upper)


def bucketize(samples: Iterable[FeeSample]) -> list[tuple[str, float]]:
    """Sum sizes per bucket, drop empty buckets, order highest fee first."""

    sizes: dict[str, float] = {}
    for fee, size in samples:
        label = bucket_label(fee)
        sizes[label] = sizes.get(label, 0.0) + size

    keyed = [(bucket_bounds(label), label, size) for label, size in sizes.items() if size > 0]
    keyed.sort(key=lambda item: item[0], reverse=True)
    return [(label, size) for _, label, size in keyed]


__all__ = ["OVERFLOW_LABEL", "ZERO_LABEL", "bucket_label", "bucket_bounds", "bucketize"]
