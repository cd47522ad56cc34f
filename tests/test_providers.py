"""Unit tests for data providers and frame helpers."""

from datetime import datetime

import pytest
import requests
from quant_engine.core.errors import NotFound, UpstreamUnavailable
from quant_engine.core.types import Holding
from quant_engine.data import frames, providers
from quant_engine.data.frames import bars_to_frame, returns_from_bars
from quant_engine.data.providers import (
    ChartApiHistoryProvider,
    CsvHistoryProvider,
    StaticHoldingsProvider,
    YamlHoldingsProvider,
)


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _chart_payload():
    # 2024-01-02 .. 2024-01-04 UTC; middle session padded with nulls
    return {
        "chart": {
            "result": [{
                "timestamp": [1704153600, 1704240000, 1704326400],
                "indicators": {"quote": [{
                    "open": [10.0, None, 12.0],
                    "high": [11.0, None, 13.0],
                    "low": [9.0, None, 11.0],
                    "close": [10.5, None, 12.5],
                    "volume": [100, None, 300],
                }]},
            }],
            "error": None,
        }
    }


def test_csv_provider(tmp_path):
    (tmp_path / "AAPL.csv").write_text(
        "date,open,high,low,close,volume\n"
        "2024-01-03,11,12,10,11.5,200\n"
        "2024-01-02,10,11,9,10.5,100\n"
        "2024-01-04,12,13,11,12.5,300\n",
        encoding="utf-8",
    )
    provider = CsvHistoryProvider(tmp_path)
    bars = provider.get_history("aapl")
    assert [b.close for b in bars] == [10.5, 11.5, 12.5]
    clipped = provider.get_history("AAPL", start=datetime(2024, 1, 3))
    assert [b.close for b in clipped] == [11.5, 12.5]


def test_csv_provider_missing(tmp_path):
    with pytest.raises(NotFound):
        CsvHistoryProvider(tmp_path).get_history("NOPE")


def test_csv_provider_bad_columns(tmp_path):
    (tmp_path / "BAD.csv").write_text("date,close\n2024-01-02,1\n", encoding="utf-8")
    with pytest.raises(UpstreamUnavailable):
        CsvHistoryProvider(tmp_path).get_history("BAD")


def test_chart_provider_parses_and_drops_nulls(monkeypatch):
    calls = []

    def fake_get(url, params=None, timeout=None, headers=None):
        calls.append((url, params))
        return FakeResponse(200, _chart_payload())

    monkeypatch.setattr(requests, "get", fake_get)
    bars = ChartApiHistoryProvider("https://example.test/chart/").get_history(
        "AAPL", datetime(2024, 1, 1), datetime(2024, 1, 5)
    )
    assert [b.close for b in bars] == [10.5, 12.5]
    assert bars[0].date == datetime(2024, 1, 2)
    assert calls[0][0] == "https://example.test/chart/AAPL"
    assert calls[0][1]["interval"] == "1d"


def test_chart_provider_not_found(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *a, **k: FakeResponse(404, text="nope"))
    with pytest.raises(NotFound):
        ChartApiHistoryProvider().get_history("NOPE")


def test_chart_provider_empty_result(monkeypatch):
    payload = {"chart": {"result": [], "error": None}}
    monkeypatch.setattr(requests, "get", lambda *a, **k: FakeResponse(200, payload))
    with pytest.raises(NotFound):
        ChartApiHistoryProvider().get_history("EMPTY")


def test_chart_provider_server_error(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *a, **k: FakeResponse(500, text="boom"))
    with pytest.raises(UpstreamUnavailable) as exc:
        ChartApiHistoryProvider().get_history("AAPL")
    assert exc.value.status_code == 500


def test_chart_provider_connection_error(monkeypatch):
    def fail(*a, **k):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(requests, "get", fail)
    with pytest.raises(UpstreamUnavailable):
        ChartApiHistoryProvider().get_history("AAPL")


def test_chart_provider_retries_rate_limit(monkeypatch):
    responses = [FakeResponse(429, text="slow down"), FakeResponse(200, _chart_payload())]
    monkeypatch.setattr(requests, "get", lambda *a, **k: responses.pop(0))
    monkeypatch.setattr(providers.time, "sleep", lambda s: None)
    bars = ChartApiHistoryProvider().get_history("AAPL")
    assert len(bars) == 2
    assert responses == []


def test_holdings_providers(tmp_path):
    path = tmp_path / "holdings.yaml"
    path.write_text(
        "holdings:\n"
        "  - {symbol: aapl, quantity: 10, avg_price: 150.0}\n"
        "  - {symbol: BTC-USD, quantity: 0.5, avg_price: 40000, type: crypto, name: Bitcoin}\n",
        encoding="utf-8",
    )
    holdings = YamlHoldingsProvider(path).get_holdings()
    assert holdings[0] == Holding("AAPL", 10.0, 150.0)
    assert holdings[1].type == "crypto"
    assert StaticHoldingsProvider(holdings).get_holdings() == holdings


def test_bars_to_frame_rejects_unordered(bar_factory):
    bars = bar_factory([1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        bars_to_frame([bars[1], bars[0], bars[2]])
    with pytest.raises(ValueError):
        bars_to_frame([bars[0], bars[0]])


def test_frame_round_trip_drops_incomplete_rows(bar_factory):
    df = bars_to_frame(bar_factory([1.0, 2.0, 3.0]))
    df.loc[1, "close"] = float("nan")
    assert [b.close for b in frames.frame_to_bars(df)] == [1.0, 3.0]


def test_returns_from_bars(bar_factory):
    returns = returns_from_bars(bar_factory([100.0, 110.0, 99.0]))
    assert list(returns) == pytest.approx([0.1, -0.1])
    assert returns.index[0] == datetime(2024, 1, 2)
