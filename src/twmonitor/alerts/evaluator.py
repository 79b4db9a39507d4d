from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

import structlog

from twmonitor.alerts.dedup import DailyDeduper
from twmonitor.alerts.formatting import format_alert_message
from twmonitor.alerts.rules import AlertRules
from twmonitor.alerts.state import MonitorState
from twmonitor.indicators.basic_indicators import compute_indicator_set
from twmonitor.utils.types import Alert, AlertCondition, InstrumentKind, InstrumentSnapshot

log = structlog.get_logger("evaluator")


def _benchmark(snapshots: Iterable[InstrumentSnapshot]) -> Optional[InstrumentSnapshot]:
    for s in snapshots:
        if s.kind is InstrumentKind.BENCHMARK:
            return s
    return None


class AlertEvaluator:
    """
    Applies the four daily conditions to one invocation's snapshots.

    Pure in-memory logic: no I/O, no awaiting. The caller loads MonitorState
    from the store, runs accumulate_bleed() (persisting right away when it
    returns True), then evaluate(), then writes the state back.

      - BENCHMARK: A (panic sell), B (chronic bleed)
      - FUND:      C (RSI oversold), D (MA20 deviation)

    Each (symbol, condition) fires at most once per day via the dedup set.
    """

    def __init__(self, rules: Optional[AlertRules] = None):
        self.rules = rules or AlertRules()

    # ---------- daily accumulation (B, step 1) ----------

    def accumulate_bleed(
        self,
        snapshots: Sequence[InstrumentSnapshot],
        state: MonitorState,
        today: str,
    ) -> bool:
        """
        Fold yesterday's close-to-close move into cumulative_drop, at most
        once per calendar day. Uses the last two history entries whatever
        dates they cover. Returns True when state changed.
        """
        bm = _benchmark(snapshots)
        if bm is None or not bm.is_loaded or len(bm.closes) < self.rules.min_bleed_history:
            return False
        if state.last_processed_day_for_bleed == today:
            return False

        yesterday_change = bm.closes[-1] - bm.closes[-2]
        if yesterday_change < 0:
            state.cumulative_drop += abs(yesterday_change)
        else:
            state.cumulative_drop = 0.0  # green day
        state.last_processed_day_for_bleed = today

        log.info("bleed_accumulated", symbol=bm.symbol, change=round(yesterday_change, 2),
                 cumulative=round(state.cumulative_drop, 2), day=today)
        return True

    # ---------- evaluation ----------

    def evaluate(
        self,
        snapshots: Sequence[InstrumentSnapshot],
        state: MonitorState,
        now: datetime,
    ) -> list[Alert]:
        dedupe = DailyDeduper(state.notified_today)
        alerts: list[Alert] = []

        for snap in snapshots:
            if not snap.is_loaded:
                continue
            if snap.kind is InstrumentKind.BENCHMARK:
                fired = self._eval_benchmark(snap, state)
            elif snap.kind is InstrumentKind.FUND:
                fired = self._eval_fund(snap)
            else:
                raise ValueError(f"Unsupported instrument kind: {snap.kind}")

            for condition, value in fired:
                key = dedupe.key(snap.symbol, condition)
                if dedupe.seen(key):
                    log.debug("alert_deduped", key=key)
                    continue
                dedupe.mark(key)
                alerts.append(Alert(
                    symbol=snap.symbol,
                    condition=condition,
                    message=format_alert_message(condition, snap, value, self.rules),
                    timestamp=now,
                ))
                log.info("alert_triggered", symbol=snap.symbol, condition=condition.name,
                         value=round(value, 4))
        return alerts

    def _eval_benchmark(self, snap: InstrumentSnapshot, state: MonitorState) -> list[tuple[AlertCondition, float]]:
        r = self.rules
        fired: list[tuple[AlertCondition, float]] = []
        if len(snap.closes) < r.min_bleed_history:
            return fired

        # A: absolute point drop since the session open
        single_day_drop = snap.open - snap.price
        if single_day_drop > r.panic_drop_points:
            fired.append((AlertCondition.PANIC_SELL, single_day_drop))

        # B: closed-day damage plus today's live drop
        total = state.cumulative_drop + max(0.0, single_day_drop)
        if total > r.bleed_points:
            fired.append((AlertCondition.CHRONIC_BLEED, total))
            # release valve, restarts from zero even when the alert is deduped
            state.cumulative_drop = 0.0
        return fired

    def _eval_fund(self, snap: InstrumentSnapshot) -> list[tuple[AlertCondition, float]]:
        r = self.rules
        fired: list[tuple[AlertCondition, float]] = []
        if len(snap.closes) <= r.rsi_period or snap.price <= 0 or snap.open <= 0:
            return fired

        ind = compute_indicator_set(snap.closes, snap.price, sma_period=r.sma_period, rsi_period=r.rsi_period)

        # C: RSI including the live price
        if ind.rsi14 < r.rsi_oversold:
            fired.append((AlertCondition.FUND_OVERSOLD, ind.rsi14))

        # D: bias vs history-only SMA
        if len(snap.closes) >= r.sma_period and ind.bias is not None and ind.bias < r.deviation_pct:
            fired.append((AlertCondition.FUND_DEVIATION, ind.bias))
        return fired
