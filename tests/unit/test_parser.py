import pytest
from twmonitor.ingest import parser
from twmonitor.ingest.parser import FetchError

def _chart(meta, opens=None, closes=None, error=None, result=True):
    quote = {}
    if opens is not None:
        quote["open"] = opens
    if closes is not None:
        quote["close"] = closes
    res = [{"meta": meta, "indicators": {"quote": [quote]}}] if result else []
    return {"chart": {"result": res, "error": error}}

def test_parse_daily_history_drops_nulls():
    payload = _chart({"chartPreviousClose": 99.5}, closes=[100.0, None, 101.5, 102.0])
    h = parser.parse_daily_history(payload, "0050.TW")
    assert h.closes == [100.0, 101.5, 102.0]
    assert h.prev_close == pytest.approx(99.5)

def test_parse_intraday_quote_first_open():
    payload = _chart({"regularMarketPrice": 17750.0, "chartPreviousClose": 18050.0}, opens=[18000.0, 17900.0])
    q = parser.parse_intraday_quote(payload, "^TWII")
    assert q.price == pytest.approx(17750.0)
    assert q.open == pytest.approx(18000.0)

def test_parse_intraday_quote_falls_back_to_prev_close():
    payload = _chart({"regularMarketPrice": 150.0, "chartPreviousClose": 149.0}, opens=[])
    assert parser.parse_intraday_quote(payload, "0050.TW").open == pytest.approx(149.0)

    payload = _chart({"regularMarketPrice": 150.0, "chartPreviousClose": 149.0}, opens=[None])
    assert parser.parse_intraday_quote(payload, "0050.TW").open == pytest.approx(149.0)

def test_missing_price_is_a_failure():
    payload = _chart({"chartPreviousClose": 149.0}, opens=[150.0])
    with pytest.raises(FetchError):
        parser.parse_intraday_quote(payload, "0050.TW")

def test_chart_error_and_empty_result():
    with pytest.raises(FetchError) as ei:
        parser.parse_chart_result(_chart({}, error={"code": "Not Found", "description": "No data found"}), "BAD")
    assert ei.value.symbol == "BAD"
    assert "No data found" in str(ei.value)

    with pytest.raises(FetchError):
        parser.parse_chart_result(_chart({}, result=False), "BAD")
    with pytest.raises(FetchError):
        parser.parse_chart_result({"unexpected": True}, "BAD")
