# src/twmonitor/main.py
import argparse
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence

import structlog

from storage.redis_state import StateStore, redis_from_url
from twmonitor.alerts.evaluator import AlertEvaluator
from twmonitor.alerts.gate import DayBoundaryGate
from twmonitor.alerts.notifiers import ConsoleNotifier, Notifier
from twmonitor.alerts.rules import AlertRules
from twmonitor.config import MonitorConfig
from twmonitor.data.snapshots import SnapshotAssembler, SnapshotSource
from twmonitor.ingest.yahoo import YahooChartClient, YahooConfig
from twmonitor.notify import line, telegram
from twmonitor.notify.dispatcher import NotificationDispatcher
from twmonitor.utils.market_calendar import is_trading_hours, session_state, trading_date
from twmonitor.utils.time import utc_now
from twmonitor.utils.types import DEFAULT_INSTRUMENTS, Instrument

log = structlog.get_logger()


# ---------------------------
# Wiring
# ---------------------------

@dataclass(slots=True)
class MonitorDeps:
    store: StateStore
    source: SnapshotSource
    notifier: Optional[Notifier]
    instruments: Sequence[Instrument] = DEFAULT_INSTRUMENTS
    rules: AlertRules = field(default_factory=AlertRules)
    is_open: Callable[[datetime], bool] = is_trading_hours


@dataclass(slots=True)
class RunResult:
    ok: bool
    status: str             # "ok" | "paused" | "config_error" | "error"
    alerts_sent: int = 0
    message: str = ""


def build_notifier(cfg: MonitorConfig) -> Notifier:
    """Raises RuntimeError when the selected channel has no credentials."""
    if cfg.channel == "console":
        return ConsoleNotifier()
    if cfg.channel == "telegram":
        return telegram.TelegramNotifier(telegram.config_from_env())
    return line.LineNotifier(line.config_from_env())


# ---------------------------
# One invocation
# ---------------------------

async def run_monitor(deps: MonitorDeps, now: Optional[datetime] = None) -> RunResult:
    """
    Gate -> assemble -> bleed step (persisted at once) -> evaluate ->
    one batched notification -> persist counter and dedup set.

    All continuity lives in the store; nothing is kept between calls.
    """
    now = now or utc_now()

    # fatal before any state access: there is nobody to tell
    if deps.notifier is None:
        log.error("notifier_not_configured")
        return RunResult(False, "config_error", message="Missing notification credentials")

    # outside the failure-notice path: idle-branch store errors are logged only
    gate = DayBoundaryGate(deps.store, is_open=deps.is_open)
    try:
        in_session = await gate.check(now)
    except Exception as e:
        log.exception("day_gate_failed", err=str(e))
        return RunResult(False, "error", message=str(e))
    if not in_session:
        st = session_state(now)
        log.info("monitor_paused", phase=st.phase, seconds_to_next=st.seconds_to_next)
        return RunResult(True, "paused", message="Not trading hours. Monitor paused.")

    dispatcher = NotificationDispatcher(deps.notifier)
    try:
        today = trading_date(now)
        state = await deps.store.load_state()
        snapshots = await SnapshotAssembler(deps.source, deps.instruments).assemble()

        evaluator = AlertEvaluator(deps.rules)
        if evaluator.accumulate_bleed(snapshots, state, today):
            await deps.store.save_bleed(state)

        alerts = evaluator.evaluate(snapshots, state, now)
        if alerts:
            await dispatcher.dispatch(alerts)

        await deps.store.save_evaluation(state)
        log.info("monitor_run_complete", day=today, snapshots=len(snapshots), alerts=len(alerts))
        return RunResult(True, "ok", alerts_sent=len(alerts))
    except Exception as e:
        log.exception("monitor_run_failed", err=str(e))
        await dispatcher.notify_failure(e)
        return RunResult(False, "error", message=str(e))


async def run_once(cfg: MonitorConfig, now: Optional[datetime] = None) -> RunResult:
    """Build real dependencies from config, run one invocation, release resources."""
    try:
        notifier = build_notifier(cfg)
    except RuntimeError as e:
        log.error("notifier_config_missing", channel=cfg.channel, err=str(e))
        return RunResult(False, "config_error", message=str(e))

    redis_client = redis_from_url(cfg.redis_url)
    try:
        ycfg = YahooConfig(timeout_s=cfg.yahoo_timeout_s, max_retries=cfg.yahoo_max_retries)
        async with YahooChartClient(ycfg) as source:
            deps = MonitorDeps(
                store=StateStore(redis_client),
                source=source,
                notifier=notifier,
                instruments=cfg.instruments,
            )
            return await run_monitor(deps, now)
    finally:
        await redis_client.aclose()


# ---------------------------
# Main
# ---------------------------

def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="twmonitor", description="Run the market alert monitor")
    parser.add_argument("--serve", action="store_true", help="serve GET /api/monitor instead of running once")
    args = parser.parse_args(argv)

    cfg = MonitorConfig.from_env()
    if args.serve:
        from twmonitor.app import serve
        serve(cfg)
        return 0

    result = asyncio.run(run_once(cfg))
    log.info("monitor_result", ok=result.ok, status=result.status, alerts_sent=result.alerts_sent)
    return 0 if result.ok else 1


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        pass
