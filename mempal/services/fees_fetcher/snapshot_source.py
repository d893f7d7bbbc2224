"""Mempool snapshot retrieval with a canonical histogram fallback."""

from __future__ import annotations

import logging
import threading
from contextlib import closing

from mempal.core.errors import FeeFetchError
from mempal.core.settings import Settings, SettingsStore
from mempal.services.tor import TorMonitor, TorState

from .endpoints import fallback_url, normalize_url
from .fee_router import check_cancelled
from .mempool_client import ClientRegistry, MempoolClient, read_json
from .models import MempoolSnapshot

LOGGER = logging.getLogger(__name__)


def read_snapshot(client: MempoolClient) -> MempoolSnapshot:
    response = client.get_mempool_info()
    with closing(response):
        return MempoolSnapshot.from_payload(read_json(response))


class SnapshotSource:
    """Fetch ``/api/mempool`` and patch in a canonical histogram when needed.

    Some custom servers report the mempool without a fee histogram. Once a
    configured URL has needed the fallback, later snapshots from that URL
    keep using it.
    """

    def __init__(
        self,
        settings: SettingsStore,
        tor: TorMonitor,
        *,
        clients: ClientRegistry | None = None,
    ) -> None:
        self._settings = settings
        self._tor = tor
        self._clients = clients or ClientRegistry()
        self._needs_fallback_url: str | None = None

    def fetch_snapshot(self, *, cancel_event: threading.Event | None = None) -> MempoolSnapshot | None:
        settings = self._settings.snapshot()
        tor_state = self._tor.tor_state()
        api_url = normalize_url(settings.api_url)

        check_cancelled(cancel_event)
        client = self._clients.primary(settings, tor_state)
        try:
            snapshot = read_snapshot(client)
        except FeeFetchError as exc:
            LOGGER.error("Error fetching mempool info from %s: %s", client.base_url, exc)
            return None

        sticky = self._needs_fallback_url == api_url
        if not (snapshot.needs_histogram_fallback or sticky):
            return snapshot

        self._needs_fallback_url = api_url
        check_cancelled(cancel_event)
        return self._with_fallback_histogram(snapshot, settings, tor_state)

    def _with_fallback_histogram(
        self,
        snapshot: MempoolSnapshot,
        settings: Settings,
        tor_state: TorState,
    ) -> MempoolSnapshot:
        url = fallback_url(tor_state)
        if normalize_url(url) == normalize_url(settings.api_url):
            return snapshot
        timeout = (
            settings.histogram_fallback_tor_timeout_sec if tor_state.usable else settings.histogram_fallback_timeout_sec
        )
        client = self._clients.client_for(url, use_tor=tor_state.usable, settings=settings, timeout=timeout)
        try:
            fallback = read_snapshot(client)
        except FeeFetchError as exc:
            LOGGER.warning("Non-critical error fetching fallback histogram: %s", exc)
            return snapshot
        if fallback.needs_histogram_fallback:
            LOGGER.warning("Fallback mempool info from %s has no histogram", client.base_url)
            return snapshot
        LOGGER.info("Using fee histogram from %s", client.base_url)
        return snapshot.with_histogram(fallback.fee_histogram)


__all__ = ["SnapshotSource", "read_snapshot"]
