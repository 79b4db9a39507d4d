from __future__ import annotations

import asyncio
from typing import Iterable, Protocol

import structlog

from twmonitor.utils.types import (
    DailyHistory,
    Instrument,
    InstrumentSnapshot,
    IntradayQuote,
)

log = structlog.get_logger("snapshots")


class SnapshotSource(Protocol):
    """Anything that can fetch the two halves of a snapshot (YahooChartClient in prod)."""

    async def fetch_daily_history(self, symbol: str) -> DailyHistory: ...

    async def fetch_intraday_quote(self, symbol: str) -> IntradayQuote: ...


def build_snapshot(inst: Instrument, history: DailyHistory, quote: IntradayQuote) -> InstrumentSnapshot:
    change = quote.price - history.prev_close
    change_pct = (change / history.prev_close * 100.0) if history.prev_close else 0.0
    return InstrumentSnapshot(
        symbol=inst.symbol,
        name=inst.name,
        kind=inst.kind,
        price=quote.price,
        open=quote.open,
        change=change,
        change_pct=change_pct,
        closes=list(history.closes),
    )


class SnapshotAssembler:
    """
    Fan-out fetch of history + quote per instrument, fan-in into a list of
    snapshots. A failing instrument is dropped (and logged); the others are
    unaffected. Fewer snapshots than instruments, including none, is a
    normal outcome.
    """

    def __init__(self, source: SnapshotSource, instruments: Iterable[Instrument]):
        self.source = source
        self.instruments = list(instruments)

    async def _one(self, inst: Instrument) -> InstrumentSnapshot:
        history, quote = await asyncio.gather(
            self.source.fetch_daily_history(inst.symbol),
            self.source.fetch_intraday_quote(inst.symbol),
        )
        return build_snapshot(inst, history, quote)

    async def assemble(self) -> list[InstrumentSnapshot]:
        results = await asyncio.gather(
            *(self._one(inst) for inst in self.instruments),
            return_exceptions=True,
        )
        out: list[InstrumentSnapshot] = []
        for inst, res in zip(self.instruments, results):
            if isinstance(res, asyncio.CancelledError):
                raise res
            if isinstance(res, BaseException):
                log.warning("snapshot_dropped", symbol=inst.symbol, err=str(res), err_type=type(res).__name__)
                continue
            out.append(res)
        log.info("snapshots_assembled", requested=len(self.instruments), assembled=len(out))
        return out
