"""Last known good dashboard data, owned by one dashboard service."""

from __future__ import annotations

from dataclasses import dataclass, field

from mempal.services.fees_fetcher import FeeRates, MempoolSnapshot


@dataclass(slots=True)
class DashboardCache:
    fee_rates: FeeRates | None = None
    snapshot: MempoolSnapshot | None = None
    last_histogram: list[tuple[float, ...]] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.fee_rates is not None or self.snapshot is not None

    def save(self, fee_rates: FeeRates | None, snapshot: MempoolSnapshot | None) -> None:
        """Remember whichever parts are present; absent parts keep the old value."""

        if fee_rates is not None:
            self.fee_rates = fee_rates
        if snapshot is not None:
            self.snapshot = snapshot
            if snapshot.fee_histogram:
                self.last_histogram = list(snapshot.fee_histogram)

    def clear(self) -> None:
        self.fee_rates = None
        self.snapshot = None
        self.last_histogram = []


__all__ = ["DashboardCache"]
