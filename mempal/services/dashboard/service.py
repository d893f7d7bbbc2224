"""Dashboard refresh: fee rates, mempool snapshot and aggregated histogram."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from mempal.core.settings import SettingsStore
from mempal.services.fees_fetcher import FeeRates, FeeRatesFetcher, MempoolSnapshot, SnapshotSource
from mempal.services.histogram import RangeEntry, aggregate

from .cache import DashboardCache

LOGGER = logging.getLogger(__name__)

STALE_NOTICE = "Showing last known data"


@dataclass(frozen=True, slots=True)
class DashboardView:
    """One refresh worth of dashboard data; each part may be missing.

    ``is_stale`` is set when any part was filled in from an earlier refresh.
    """

    fee_rates: FeeRates | None = None
    snapshot: MempoolSnapshot | None = None
    histogram: list[RangeEntry] = field(default_factory=list)
    is_stale: bool = False

    @property
    def has_data(self) -> bool:
        return self.fee_rates is not None or self.snapshot is not None

    @property
    def notices(self) -> list[str]:
        messages: list[str] = []
        if self.fee_rates is not None and self.fee_rates.is_using_fallback_precise_fees:
            messages.append("mempool.space fallback is being used for precise fees")
        if self.snapshot is not None and self.snapshot.is_using_fallback_histogram:
            messages.append("mempool.space fallback is being used for the fee histogram")
        if self.is_stale:
            messages.append(STALE_NOTICE)
        return messages


class DashboardService:
    """Combine one fee fetch and one snapshot fetch into a :class:`DashboardView`.

    Parts missing from a refresh are filled in from the service's own
    :class:`DashboardCache`, and an empty histogram is replaced by the last
    non-empty one.
    """

    def __init__(
        self,
        settings: SettingsStore,
        fees: FeeRatesFetcher,
        snapshots: SnapshotSource,
        *,
        cache: DashboardCache | None = None,
    ) -> None:
        self._settings = settings
        self._fees = fees
        self._snapshots = snapshots
        self.cache = cache or DashboardCache()

    def refresh(self, *, cancel_event: threading.Event | None = None) -> DashboardView:
        precise = self._settings.use_precise_fees
        fee_rates = self._fees.fetch_fee_rates(precise, cancel_event=cancel_event)
        snapshot = self._snapshots.fetch_snapshot(cancel_event=cancel_event)

        stale = False
        if fee_rates is None and self.cache.fee_rates is not None:
            LOGGER.info("Fee rates unavailable, using last known values")
            fee_rates = self.cache.fee_rates
            stale = True
        if snapshot is None and self.cache.snapshot is not None:
            LOGGER.info("Mempool info unavailable, using last known snapshot")
            snapshot = self.cache.snapshot
            stale = True
        self.cache.save(fee_rates, snapshot)

        histogram: list[RangeEntry] = []
        if snapshot is not None:
            rows = snapshot.fee_histogram
            if not rows and self.cache.last_histogram:
                rows = self.cache.last_histogram
                stale = True
            histogram = aggregate(rows, precise)

        view = DashboardView(fee_rates=fee_rates, snapshot=snapshot, histogram=histogram, is_stale=stale)
        if not view.has_data:
            LOGGER.warning("Dashboard refresh produced no data")
        return view
