"""Fee rate retrieval with custom-server fallbacks.

The precise path is a small state machine::

    PRIMARY -> FALLBACK -> DEGRADED -> DONE

``PRIMARY`` asks the configured endpoint for precise fees. A custom endpoint
always moves on to ``FALLBACK`` (the canonical service), even after a valid
answer, because some custom servers serve whole-number estimates on the
precise path. ``DEGRADED`` asks the configured endpoint for simple fees and
is only entered once that endpoint has answered at least once.
"""

from __future__ import annotations

import logging
import threading
from contextlib import closing
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from requests import Response

from mempal.core.errors import FeeFetchError, FetchCancelled, InvalidDataError, TerminalUnavailable, TransientNetworkError
from mempal.core.settings import Settings, SettingsStore
from mempal.services.tor import TorMonitor, TorState

from .endpoints import EndpointKind, classify_endpoint, fallback_url
from .mempool_client import ClientRegistry, MempoolClient, read_json
from .models import FeeRates

LOGGER = logging.getLogger(__name__)


class Stage(str, Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"
    DEGRADED = "degraded"
    DONE = "done"


@dataclass(slots=True)
class FetchRun:
    """State owned by one precise fetch."""

    settings: Settings
    tor: TorState
    endpoint: EndpointKind
    client: MempoolClient
    reachable: bool = False
    held: FeeRates | None = None
    result: FeeRates | None = None


def check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise FetchCancelled()


def read_fee_rates(response: Response, *, require_valid: bool) -> FeeRates:
    rates = FeeRates.from_payload(read_json(response))
    if require_valid and not rates.has_valid_data:
        raise InvalidDataError("fee rates are all zero", url=getattr(response, "url", None))
    return rates


class FeeRatesFetcher:
    """Fetch fee rates from the configured endpoint with fallbacks.

    Settings and Tor state are read once at the start of each call, so
    concurrent calls never share mutable state besides the client cache.
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
        self._handlers: dict[Stage, Callable[[FetchRun], Stage]] = {
            Stage.PRIMARY: self._primary,
            Stage.FALLBACK: self._fallback,
            Stage.DEGRADED: self._degraded,
        }

    def fetch_fee_rates(
        self,
        precise: bool | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> FeeRates | None:
        """Return fee rates, or ``None`` when no endpoint produced data.

        Args:
            precise: Use the precise fee path. Defaults to the
                ``use_precise_fees`` setting.
            cancel_event: Checked before each network stage; once set, the
                fetch raises :class:`FetchCancelled` instead of falling back.
        """

        settings = self._settings.snapshot()
        tor_state = self._tor.tor_state()
        if precise is None:
            precise = settings.use_precise_fees

        check_cancelled(cancel_event)
        client = self._clients.primary(settings, tor_state)
        if not precise:
            return self._fetch_simple(client)

        run = FetchRun(
            settings=settings,
            tor=tor_state,
            endpoint=classify_endpoint(settings.api_url),
            client=client,
        )
        try:
            return self._run(run, cancel_event)
        except TerminalUnavailable as exc:
            LOGGER.warning("No fee rates available from %s: %s", client.base_url, exc)
            return None

    def _run(self, run: FetchRun, cancel_event: threading.Event | None) -> FeeRates:
        stage = Stage.PRIMARY
        while stage is not Stage.DONE:
            check_cancelled(cancel_event)
            LOGGER.debug("Fee fetch stage %s for %s (%s)", stage.value, run.client.base_url, run.endpoint.value)
            stage = self._handlers[stage](run)
        if run.result is None:
            raise TerminalUnavailable("all fee sources exhausted", url=run.client.base_url)
        return run.result

    def _primary(self, run: FetchRun) -> Stage:
        custom = run.endpoint is EndpointKind.CUSTOM
        try:
            response = run.client.get_precise_fee_rates()
        except TransientNetworkError as exc:
            LOGGER.error("Server unreachable: %s", exc)
            return Stage.FALLBACK if custom else Stage.DONE

        run.reachable = True
        with closing(response):
            try:
                rates = read_fee_rates(response, require_valid=True)
            except InvalidDataError as exc:
                LOGGER.warning("Precise fee rates unusable from %s: %s", run.client.base_url, exc)
                return Stage.FALLBACK if custom else Stage.DEGRADED

        if custom:
            run.held = rates
            return Stage.FALLBACK
        run.result = rates
        return Stage.DONE

    def _fallback(self, run: FetchRun) -> Stage:
        rates = self._try_fallback(run)
        if rates is not None:
            run.result = rates
            return Stage.DONE
        if run.held is not None:
            run.result = run.held
            return Stage.DONE
        return Stage.DEGRADED if run.reachable else Stage.DONE

    def _degraded(self, run: FetchRun) -> Stage:
        LOGGER.info("Falling back to regular fee rates from %s", run.client.base_url)
        run.result = self._fetch_simple(run.client)
        return Stage.DONE

    def _try_fallback(self, run: FetchRun) -> FeeRates | None:
        url = fallback_url(run.tor)
        client = self._clients.client_for(url, use_tor=run.tor.usable, settings=run.settings)
        try:
            response = client.get_precise_fee_rates()
        except TransientNetworkError as exc:
            LOGGER.error("Fallback to %s precise fees failed: %s", client.base_url, exc)
            return None
        with closing(response):
            try:
                rates = read_fee_rates(response, require_valid=True)
            except InvalidDataError as exc:
                LOGGER.error("Fallback precise fees unusable from %s: %s", client.base_url, exc)
                return None
        LOGGER.info("Using %s precise fees as fallback", client.base_url)
        return rates.as_fallback()

    def _fetch_simple(self, client: MempoolClient) -> FeeRates | None:
        try:
            response = client.get_fee_rates()
        except TransientNetworkError as exc:
            LOGGER.error("Error fetching regular fee rates: %s", exc)
            return None
        with closing(response):
            try:
                return read_fee_rates(response, require_valid=False)
            except FeeFetchError as exc:
                LOGGER.error("Regular fee rates unusable from %s: %s", client.base_url, exc)
                return None


__all__ = ["FeeRatesFetcher", "FetchRun", "Stage", "check_cancelled", "read_fee_rates"]
