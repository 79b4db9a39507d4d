import asyncio

import pytest

from twmonitor.data.snapshots import SnapshotAssembler, build_snapshot
from twmonitor.utils.types import (
    DEFAULT_INSTRUMENTS,
    DailyHistory,
    Instrument,
    InstrumentKind,
    IntradayQuote,
)

from tests.helpers.fakes import FakeSource

DATA = {
    "^TWII": ([17900.0, 18000.0], 18000.0, 17750.0, 18000.0),
    "0050.TW": ([150.0] * 20, 150.0, 153.0, 151.0),
    "00646.TW": ([40.0] * 20, 40.0, 40.0, 40.0),
    "00878.TW": ([22.0] * 20, 22.0, 22.0, 22.0),
    "00933B.TWO": ([16.0] * 20, 16.0, 16.0, 16.0),
}


def test_build_snapshot_change_fields():
    inst = Instrument("0050.TW", "Yuanta Taiwan Top 50 ETF", InstrumentKind.FUND)
    snap = build_snapshot(inst, DailyHistory([1.0, 2.0], prev_close=150.0), IntradayQuote(price=153.0, open=151.0))
    assert snap.change == pytest.approx(3.0)
    assert snap.change_pct == pytest.approx(2.0)
    assert snap.closes == [1.0, 2.0]
    assert snap.kind is InstrumentKind.FUND

def test_build_snapshot_zero_prev_close():
    inst = Instrument("X", "X", InstrumentKind.FUND)
    snap = build_snapshot(inst, DailyHistory([], prev_close=0.0), IntradayQuote(price=1.0, open=1.0))
    assert snap.change_pct == 0.0

@pytest.mark.asyncio
async def test_assemble_all_instruments():
    src = FakeSource(DATA)
    snaps = await SnapshotAssembler(src, DEFAULT_INSTRUMENTS).assemble()
    assert [s.symbol for s in snaps] == [i.symbol for i in DEFAULT_INSTRUMENTS]
    assert snaps[0].kind is InstrumentKind.BENCHMARK
    assert len(src.calls) == 2 * len(DEFAULT_INSTRUMENTS)

@pytest.mark.asyncio
async def test_failed_instrument_is_dropped_others_survive():
    src = FakeSource(DATA, fail={"0050.TW"})
    snaps = await SnapshotAssembler(src, DEFAULT_INSTRUMENTS).assemble()
    symbols = [s.symbol for s in snaps]
    assert "0050.TW" not in symbols
    assert len(symbols) == len(DEFAULT_INSTRUMENTS) - 1

@pytest.mark.asyncio
async def test_all_failures_yield_empty_list():
    src = FakeSource(DATA, fail=set(DATA))
    assert await SnapshotAssembler(src, DEFAULT_INSTRUMENTS).assemble() == []

@pytest.mark.asyncio
async def test_unexpected_error_is_isolated_too():
    class Broken(FakeSource):
        async def fetch_intraday_quote(self, symbol):
            if symbol == "^TWII":
                raise KeyError("regularMarketPrice")
            return await super().fetch_intraday_quote(symbol)

    snaps = await SnapshotAssembler(Broken(DATA), DEFAULT_INSTRUMENTS).assemble()
    assert "^TWII" not in [s.symbol for s in snaps]

@pytest.mark.asyncio
async def test_cancellation_propagates():
    class Cancelled(FakeSource):
        async def fetch_daily_history(self, symbol):
            raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await SnapshotAssembler(Cancelled(DATA), DEFAULT_INSTRUMENTS).assemble()
