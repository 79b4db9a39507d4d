from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

# ---- instrument domain ----

class InstrumentKind(Enum):
    BENCHMARK = "benchmark"   # broad-market index: conditions A/B
    FUND = "fund"             # tradable ETF: conditions C/D


@dataclass(slots=True, frozen=True)
class Instrument:
    symbol: str
    name: str
    kind: InstrumentKind


BENCHMARK_SYMBOL = "^TWII"

DEFAULT_INSTRUMENTS: tuple[Instrument, ...] = (
    Instrument(BENCHMARK_SYMBOL, "TAIEX Weighted Index", InstrumentKind.BENCHMARK),
    Instrument("0050.TW", "Yuanta Taiwan Top 50 ETF", InstrumentKind.FUND),
    Instrument("00646.TW", "Yuanta S&P 500 ETF", InstrumentKind.FUND),
    Instrument("00878.TW", "Cathay Sustainable High Dividend ETF", InstrumentKind.FUND),
    Instrument("00933B.TWO", "Cathay 10Y+ Financial Bond ETF", InstrumentKind.FUND),
)

# ---- fetch-level primitives ----

@dataclass(slots=True)
class DailyHistory:
    closes: list[float]      # oldest -> newest, nulls dropped
    prev_close: float


@dataclass(slots=True)
class IntradayQuote:
    price: float
    open: float


@dataclass(slots=True)
class InstrumentSnapshot:
    """
    One instrument as seen by a single invocation.
    price == 0 is the "not yet loaded" sentinel: no rule may fire on it.
    """
    symbol: str
    name: str
    kind: InstrumentKind
    price: float
    open: float
    change: float = 0.0
    change_pct: float = 0.0
    closes: list[float] = field(default_factory=list)

    @property
    def is_loaded(self) -> bool:
        return self.price != 0


@dataclass(slots=True)
class IndicatorSet:
    sma20: float             # 0.0 means undefined (not enough history)
    rsi14: float
    bias: Optional[float]    # None when sma20 is undefined

# ---- alerting domain ----

class AlertCondition(Enum):
    PANIC_SELL = "A: Panic Sell"
    CHRONIC_BLEED = "B: Chronic Bleed"
    FUND_OVERSOLD = "C: ETF Oversold (RSI)"
    FUND_DEVIATION = "D: ETF Deviation (MA20)"

    @property
    def tag(self) -> str:
        return self.value


def dedupe_key(symbol: str, condition: AlertCondition) -> str:
    return f"{symbol}|{condition.name}"


@dataclass(slots=True)
class Alert:
    symbol: str
    condition: AlertCondition
    message: str
    timestamp: datetime
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def dedupe_key(self) -> str:
        return dedupe_key(self.symbol, self.condition)
