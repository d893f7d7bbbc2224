"""CLI integration tests against a fake mempool network."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from mempal import cli
from mempal.core.errors import TransientNetworkError
from mempal.services.fees_fetcher import ClientRegistry
from mempal_fakes import FakeNetwork, fee_response, mempool_response

CUSTOM = "http://node.lan:8999"
CANONICAL = "https://mempool.space"


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def network(fake_network: FakeNetwork, monkeypatch: pytest.MonkeyPatch) -> FakeNetwork:
    monkeypatch.setattr(cli, "ClientRegistry", lambda: ClientRegistry(fake_network.factory))
    return fake_network


def test_fees_simple(cli_runner: CliRunner, network: FakeNetwork) -> None:
    network.route(CANONICAL, "simple", fee_response(12, 9, 6, 2))

    result = cli_runner.invoke(cli.app, ["fees", "--simple"])

    assert result.exit_code == 0, result.output
    assert "fastest:   12 sat/vB" in result.output
    assert "economy:   2 sat/vB" in result.output
    assert network.calls == [(CANONICAL, "simple")]
    assert all(client.closed for client in network.clients)


def test_fees_precise_reports_fallback(cli_runner: CliRunner, network: FakeNetwork) -> None:
    network.route(CUSTOM, "precise", TransientNetworkError("down"))
    network.route(CANONICAL, "precise", fee_response(5.5, 4.2, 3, 1.1))

    result = cli_runner.invoke(cli.app, ["--api-url", CUSTOM, "fees", "--precise"])

    assert result.exit_code == 0, result.output
    assert "fastest:   5.5 sat/vB" in result.output
    assert "mempool.space fallback is being used" in result.output


def test_fees_unavailable_exits_non_zero(cli_runner: CliRunner, network: FakeNetwork) -> None:
    network.route(CANONICAL, "precise", TransientNetworkError("down"))

    result = cli_runner.invoke(cli.app, ["fees", "--precise"])

    assert result.exit_code == 1
    assert "Fee rates unavailable." in result.output


def test_histogram_from_file(cli_runner: CliRunner, network: FakeNetwork, tmp_path: Path) -> None:
    source = tmp_path / "mempool.json"
    source.write_text(json.dumps({"fee_histogram": [[150.5, 100000], [2.5, 1000000]]}), encoding="utf-8")

    result = cli_runner.invoke(cli.app, ["histogram", "--bucketed", "--input", str(source)])

    assert result.exit_code == 0, result.output
    assert "150 - 160" in result.output
    assert "0.10 vMB" in result.output
    assert "1.10 vMB" in result.output
    assert network.calls == []


def test_histogram_rejects_bad_json(cli_runner: CliRunner, network: FakeNetwork, tmp_path: Path) -> None:
    source = tmp_path / "broken.json"
    source.write_text("{not json", encoding="utf-8")

    result = cli_runner.invoke(cli.app, ["histogram", "--input", str(source)])

    assert result.exit_code == 2


def test_histogram_fetches_with_fallback(cli_runner: CliRunner, network: FakeNetwork) -> None:
    network.route(CUSTOM, "mempool", mempool_response([]))
    network.route(CANONICAL, "mempool", mempool_response([[10.0, 100000], [9.5, 100000]]))

    result = cli_runner.invoke(cli.app, ["--api-url", CUSTOM, "histogram", "--precise"])

    assert result.exit_code == 0, result.output
    assert "9.50 - 10.00" in result.output
    assert "0.20 vMB" in result.output
    assert "mempool.space fallback is being used" in result.output


def test_dashboard(cli_runner: CliRunner, network: FakeNetwork) -> None:
    network.route(CANONICAL, "simple", fee_response(8, 6, 4, 2))
    network.route(CANONICAL, "mempool", mempool_response([[12.4, 700000]], vsize=2_340_000, count=4100))

    result = cli_runner.invoke(cli.app, ["dashboard"])

    assert result.exit_code == 0, result.output
    assert "fastest:   8 sat/vB" in result.output
    assert "unconfirmed: 4100 txs, 2.34 vMB" in result.output
    assert "12 - 13" in result.output


def test_dashboard_without_data(cli_runner: CliRunner, network: FakeNetwork) -> None:
    network.route(CANONICAL, "simple", TransientNetworkError("down"))
    network.route(CANONICAL, "mempool", TransientNetworkError("down"))

    result = cli_runner.invoke(cli.app, ["dashboard"])

    assert result.exit_code == 1
    assert "No data available." in result.output


def test_missing_config_is_a_usage_error(cli_runner: CliRunner, network: FakeNetwork, tmp_path: Path) -> None:
    result = cli_runner.invoke(cli.app, ["--config", str(tmp_path / "missing.yaml"), "fees"])

    assert result.exit_code == 2


def test_unknown_log_level_is_rejected(cli_runner: CliRunner, network: FakeNetwork) -> None:
    result = cli_runner.invoke(cli.app, ["--log-level", "chatty", "fees"])

    assert result.exit_code == 2


def test_histogram_from_file_skips_bad_rows(cli_runner: CliRunner, network: FakeNetwork, tmp_path: Path) -> None:
    source = tmp_path / "histogram.json"
    source.write_text(json.dumps([[1, "x"], [1, None], [150.5, 100000]]), encoding="utf-8")

    result = cli_runner.invoke(cli.app, ["histogram", "--bucketed", "--input", str(source)])

    assert result.exit_code == 0, result.output
    assert "150 - 160" in result.output
    assert "0.10 vMB" in result.output
