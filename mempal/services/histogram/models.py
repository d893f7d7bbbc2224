"""Value types for the fee histogram aggregator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

VBYTES_PER_VMB = 1_000_000


class FeeSample(NamedTuple):
    """One histogram row: fee rate (sat/vB) and the vsize paying it."""

    fee_rate: float
    size: float


@dataclass(slots=True)
class FeeRange:
    """Working range accumulated during precise aggregation."""

    start: float
    end: float
    size: float

    @property
    def is_singleton(self) -> bool:
        return self.start == self.end

    def absorb(self, other: "FeeRange") -> None:
        """Union ``other`` into this range."""

        self.start = min(self.start, other.start)
        self.end = max(self.end, other.end)
        self.size += other.size


class ColorBand(str, Enum):
    """Next-block confirmation likelihood by cumulative queue position."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


@dataclass(frozen=True, slots=True)
class RangeEntry:
    """Display-ready histogram row.

    ``cumulative_size`` is in vMB and covers this entry and every
    higher-fee entry before it.
    """

    label: str
    size: float
    cumulative_size: float
    color_band: ColorBand

    @property
    def display_size(self) -> str:
        return f"{self.cumulative_size:.2f} vMB"


__all__ = ["VBYTES_PER_VMB", "FeeSample", "FeeRange", "ColorBand", "RangeEntry"]
