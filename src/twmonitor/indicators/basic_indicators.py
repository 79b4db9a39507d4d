# src/twmonitor/indicators/basic_indicators.py
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from twmonitor.utils.types import IndicatorSet

# ----------------------------
# Parameter presets for daily closes
# ----------------------------
DEFAULT_SMA = 20        # MA20, the "monthly line"
DEFAULT_RSI = 14        # classic RSI(14)
NEUTRAL_RSI = 50.0


def _as_array(series: Sequence[float]) -> np.ndarray:
    return np.asarray(series, dtype=np.float64)


def compute_sma(series: Sequence[float], period: int) -> float:
    """
    Mean of the last `period` values.
    Returns 0.0 when the series is shorter than `period`; callers must read
    0.0 as "undefined", never as a real average.
    """
    if period < 1:
        raise ValueError("period must be >= 1")
    c = _as_array(series)
    if c.size < period:
        return 0.0
    return float(c[-period:].mean())


def compute_rsi(series: Sequence[float], period: int = DEFAULT_RSI) -> float:
    """
    RSI over the most recent `period` close-to-close deltas only.

    Not the Wilder-smoothed running series: each call recomputes plain
    average gain / average loss from the tail of the series.
      - len(series) <= period  -> 50 (neutral, not enough data)
      - average loss == 0      -> 100 (pure uptrend)
    """
    if period < 1:
        raise ValueError("period must be >= 1")
    c = _as_array(series)
    if c.size <= period:
        return NEUTRAL_RSI

    delta = np.diff(c[-(period + 1):])
    avg_gain = float(np.maximum(delta, 0.0).sum()) / period
    avg_loss = float(np.maximum(-delta, 0.0).sum()) / period

    if avg_loss == 0.0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def compute_bias(price: float, sma: float) -> Optional[float]:
    """Percent deviation of price from its moving average; None if sma is undefined."""
    if sma <= 0.0:
        return None
    return (price - sma) / sma * 100.0


def compute_indicator_set(
    closes: Sequence[float],
    price: float,
    *,
    sma_period: int = DEFAULT_SMA,
    rsi_period: int = DEFAULT_RSI,
) -> IndicatorSet:
    # SMA uses history only; RSI gets the live price appended so it
    # reacts to the current session.
    sma = compute_sma(closes, sma_period)
    rsi = compute_rsi([*closes, price], rsi_period)
    return IndicatorSet(sma20=sma, rsi14=rsi, bias=compute_bias(price, sma))
