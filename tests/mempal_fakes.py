"""Fake HTTP responses and mempool clients shared by the test-suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mempal.services.fees_fetcher.endpoints import normalize_url


@dataclass
class FakeResponse:
    status_code: int = 200
    json_data: Any = None
    url: str = ""
    closed: bool = False

    def json(self) -> Any:
        if self.json_data is None:
            raise ValueError("JSON body not set")
        return self.json_data

    def close(self) -> None:
        self.closed = True


def fee_response(fastest: float = 0, half_hour: float = 0, hour: float = 0, economy: float = 0, status: int = 200) -> FakeResponse:
    return FakeResponse(
        status_code=status,
        json_data={"fastestFee": fastest, "halfHourFee": half_hour, "hourFee": hour, "economyFee": economy},
    )


def mempool_response(histogram: list[list[float]], *, vsize: int = 1_500_000, count: int = 3200) -> FakeResponse:
    return FakeResponse(
        json_data={"vsize": vsize, "total_fee": 0.25, "count": count, "fee_histogram": histogram},
    )


class FakeClient:
    """Stands in for MempoolClient; answers from the owning FakeNetwork's routes."""

    def __init__(self, network: "FakeNetwork", base_url: str, *, timeout: float, proxy: str | None) -> None:
        self.network = network
        self.base_url = base_url
        self.timeout = timeout
        self.proxy = proxy
        self.closed = False

    def get_fee_rates(self) -> FakeResponse:
        return self._call("simple")

    def get_precise_fee_rates(self) -> FakeResponse:
        return self._call("precise")

    def get_mempool_info(self) -> FakeResponse:
        return self._call("mempool")

    def close(self) -> None:
        self.closed = True

    def _call(self, op: str) -> FakeResponse:
        self.network.calls.append((self.base_url, op))
        key = (self.base_url, op)
        if key not in self.network.routes:
            raise AssertionError(f"unexpected {op} call on {self.base_url}")
        outcome = self.network.routes[key]
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if callable(outcome) and not isinstance(outcome, BaseException):
            outcome = outcome()
        if isinstance(outcome, BaseException):
            raise outcome
        self.network.responses.append(outcome)
        return outcome


@dataclass
class FakeNetwork:
    routes: dict[tuple[str, str], Any] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    responses: list[FakeResponse] = field(default_factory=list)
    clients: list[FakeClient] = field(default_factory=list)

    def route(self, url: str, op: str, outcome: Any) -> None:
        self.routes[(normalize_url(url), op)] = outcome

    def factory(self, base_url: str, *, timeout: float, proxy: str | None = None) -> FakeClient:
        client = FakeClient(self, base_url, timeout=timeout, proxy=proxy)
        self.clients.append(client)
        return client

    @property
    def all_closed(self) -> bool:
        return all(response.closed for response in self.responses)

