"""Payload models for the mempool REST endpoints."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from mempal.core.errors import InvalidDataError

LOGGER = logging.getLogger(__name__)

_FEE_KEYS = (
    ("fastest_fee", "fastestFee"),
    ("half_hour_fee", "halfHourFee"),
    ("hour_fee", "hourFee"),
    ("economy_fee", "economyFee"),
)


@dataclass(frozen=True, slots=True)
class FeeRates:
    """Recommended fee rates in sat/vB."""

    fastest_fee: float = 0.0
    half_hour_fee: float = 0.0
    hour_fee: float = 0.0
    economy_fee: float = 0.0
    is_using_fallback_precise_fees: bool = False

    @property
    def has_valid_data(self) -> bool:
        # All zeros means the server had nothing to report.
        return self.fastest_fee > 0 or self.half_hour_fee > 0 or self.hour_fee > 0 or self.economy_fee > 0

    def as_fallback(self) -> "FeeRates":
        return replace(self, is_using_fallback_precise_fees=True)

    @classmethod
    def from_payload(cls, payload: Any) -> "FeeRates":
        if not isinstance(payload, Mapping):
            raise InvalidDataError("fee rates payload is not an object")
        values: dict[str, float] = {}
        for attr, key in _FEE_KEYS:
            raw = payload.get(key)
            values[attr] = 0.0 if raw is None else _to_float(key, raw)
        return cls(**values)


@dataclass(frozen=True, slots=True)
class MempoolSnapshot:
    """Summary of ``/api/mempool``."""

    vsize: int = 0
    total_fee: float = 0.0
    unconfirmed_count: int = 0
    fee_histogram: list[tuple[float, ...]] = field(default_factory=list)
    is_using_fallback_histogram: bool = False

    @property
    def needs_histogram_fallback(self) -> bool:
        return not self.fee_histogram

    def with_histogram(self, histogram: list[tuple[float, ...]]) -> "MempoolSnapshot":
        return replace(self, fee_histogram=histogram, is_using_fallback_histogram=True)

    @classmethod
    def from_payload(cls, payload: Any) -> "MempoolSnapshot":
        if not isinstance(payload, Mapping):
            raise InvalidDataError("mempool payload is not an object")
        raw_histogram = payload.get("fee_histogram") or []
        if not isinstance(raw_histogram, list):
            raise InvalidDataError("fee_histogram is not a list")
        histogram: list[tuple[float, ...]] = []
        skipped = 0
        for row in raw_histogram:
            if not isinstance(row, (list, tuple)) or len(row) < 2:
                skipped += 1
                continue
            try:
                histogram.append(tuple(_to_float("fee_histogram", value) for value in row))
            except InvalidDataError:
                skipped += 1
        if skipped:
            LOGGER.debug("Skipped %d malformed fee_histogram rows", skipped)
        return cls(
            vsize=_to_int("vsize", payload.get("vsize", 0)),
            total_fee=_to_float("total_fee", payload.get("total_fee", 0)),
            unconfirmed_count=_to_int("count", payload.get("count", 0)),
            fee_histogram=histogram,
        )


def _to_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidDataError(f"{key} is not numeric: {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidDataError(f"{key} is not numeric: {value!r}") from exc


def _to_int(key: str, value: Any) -> int:
    number = _to_float(key, value)
    if not math.isfinite(number):
        raise InvalidDataError(f"{key} is not finite: {value!r}")
    return int(number)


__all__ = ["FeeRates", "MempoolSnapshot"]
