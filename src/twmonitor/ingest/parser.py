from __future__ import annotations

import math
from typing import Any, Optional

from twmonitor.utils.types import DailyHistory, IntradayQuote


class FetchError(Exception):
    """A snapshot-source failure for one symbol (network, HTTP or payload)."""

    def __init__(self, symbol: str, reason: str):
        super().__init__(f"{symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


def _num(x: Any) -> Optional[float]:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        return None
    x = float(x)
    return x if math.isfinite(x) else None


def parse_chart_result(payload: Any, symbol: str) -> dict:
    """
    Return chart.result[0] from a Yahoo v8 chart response.

    Shape (abridged):
      {"chart": {"result": [{"meta": {...},
                             "indicators": {"quote": [{"open": [...], "close": [...]}]}}],
                 "error": null}}
    """
    chart = payload.get("chart") if isinstance(payload, dict) else None
    if not isinstance(chart, dict):
        raise FetchError(symbol, "missing chart object")
    err = chart.get("error")
    if err:
        desc = err.get("description") if isinstance(err, dict) else str(err)
        raise FetchError(symbol, desc or "chart error")
    result = chart.get("result")
    if not result:
        raise FetchError(symbol, "empty chart result")
    return result[0]


def _quote_block(result: dict) -> dict:
    quotes = (result.get("indicators") or {}).get("quote") or [{}]
    return quotes[0] or {}


def parse_daily_history(payload: Any, symbol: str) -> DailyHistory:
    """Daily closes (nulls dropped, oldest first) plus the previous session close."""
    result = parse_chart_result(payload, symbol)
    meta = result.get("meta") or {}
    closes = [v for v in (_num(c) for c in _quote_block(result).get("close") or []) if v is not None]

    prev_close = _num(meta.get("chartPreviousClose"))
    if prev_close is None:
        raise FetchError(symbol, "missing chartPreviousClose")
    return DailyHistory(closes=closes, prev_close=prev_close)


def parse_intraday_quote(payload: Any, symbol: str) -> IntradayQuote:
    """
    Live price from meta.regularMarketPrice; session open from the first
    intraday bar, falling back to the previous close when no bar exists yet.
    """
    result = parse_chart_result(payload, symbol)
    meta = result.get("meta") or {}

    price = _num(meta.get("regularMarketPrice"))
    if price is None:
        raise FetchError(symbol, "missing regularMarketPrice")

    opens = _quote_block(result).get("open") or []
    open_px = _num(opens[0]) if opens else None
    if open_px is None:
        open_px = _num(meta.get("chartPreviousClose"))
    if open_px is None:
        raise FetchError(symbol, "no session open or previous close")
    return IntradayQuote(price=price, open=open_px)
