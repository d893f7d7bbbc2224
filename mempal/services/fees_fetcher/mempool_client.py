"""HTTP client for mempool.space compatible REST endpoints."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests
from requests import Response
from requests.exceptions import RequestException, Timeout

from mempal.core.errors import InvalidDataError, TransientNetworkError, UnexpectedStatusError
from mempal.core.settings import Settings
from mempal.services.tor import TorState

from .endpoints import FEES_PATH, MEMPOOL_PATH, PRECISE_FEES_PATH, is_onion, normalize_url

LOGGER = logging.getLogger(__name__)

USER_AGENT = "Mempal/1.0"
DEFAULT_TIMEOUT = 10.0


class MempoolClient:
    """Thin wrapper over a ``requests`` session bound to one base URL.

    Every call returns the raw :class:`requests.Response`; the caller owns it
    and must close it. Network failures raise :class:`TransientNetworkError`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        proxy: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = normalize_url(base_url)
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.trust_env = False
        self._session.headers.setdefault("User-Agent", USER_AGENT)
        self._session.headers.setdefault("Accept", "application/json")
        if proxy:
            self._session.proxies.update({"http": proxy, "https": proxy})

    def get_fee_rates(self) -> Response:
        return self._get(FEES_PATH)

    def get_precise_fee_rates(self) -> Response:
        return self._get(PRECISE_FEES_PATH)

    def get_mempool_info(self) -> Response:
        return self._get(MEMPOOL_PATH)

    def close(self) -> None:
        self._session.close()

    def _get(self, path: str) -> Response:
        url = f"{self.base_url}/{path}"
        started = time.monotonic()
        try:
            response = self._session.get(url, timeout=self.timeout)
        except Timeout as exc:
            LOGGER.warning("Timeout after %.2fs for %s", time.monotonic() - started, url)
            raise TransientNetworkError(f"timeout fetching {url}", url=url) from exc
        except RequestException as exc:
            LOGGER.warning("Request failed on %s: %s", url, type(exc).__name__)
            raise TransientNetworkError(f"failed to fetch {url}", url=url) from exc
        LOGGER.debug(
            "GET %s -> %s in %.2fs",
            url,
            response.status_code,
            time.monotonic() - started,
        )
        return response


def read_json(response: Response) -> Any:
    """Return the decoded body of a successful response.

    Raises:
        UnexpectedStatusError: For non-2xx responses.
        InvalidDataError: When the body is not JSON.
    """

    url = getattr(response, "url", None)
    if not 200 <= response.status_code < 300:
        raise UnexpectedStatusError(
            f"unexpected status {response.status_code}",
            url=url,
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as exc:
        raise InvalidDataError("response body is not JSON", url=url, status_code=response.status_code) from exc


ClientFactory = Callable[..., MempoolClient]


class ClientRegistry:
    """Caches clients per ``(base_url, use_tor, timeout)``.

    Owned by whoever builds the fetchers; nothing here is process-wide.
    """

    def __init__(self, factory: ClientFactory = MempoolClient) -> None:
        self._factory = factory
        self._clients: dict[tuple[str, bool, float], MempoolClient] = {}

    def client_for(
        self,
        base_url: str,
        *,
        use_tor: bool,
        settings: Settings,
        timeout: float | None = None,
    ) -> MempoolClient:
        if timeout is None:
            timeout = settings.tor_timeout_sec if use_tor and is_onion(base_url) else settings.timeout_sec
        key = (normalize_url(base_url), use_tor, timeout)
        client = self._clients.get(key)
        if client is None:
            proxy = settings.tor_proxy if use_tor else None
            LOGGER.debug("Creating client for %s (tor=%s timeout=%.1fs)", key[0], use_tor, timeout)
            client = self._factory(key[0], timeout=timeout, proxy=proxy)
            self._clients[key] = client
        return client

    def primary(self, settings: Settings, tor: TorState) -> MempoolClient:
        """Client for the configured endpoint."""

        return self.client_for(settings.api_url, use_tor=tor.usable, settings=settings)

    def close(self) -> None:
        for client in self._clients.values():
            client.close()
        self._clients.clear()


__all__ = ["MempoolClient", "ClientRegistry", "read_json", "USER_AGENT"]
