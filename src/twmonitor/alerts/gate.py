from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

import structlog

from storage.redis_state import KEY_LAST_RESET_DAY, StateStore
from twmonitor.utils.market_calendar import is_trading_hours, trading_date

log = structlog.get_logger("day_gate")


class DayBoundaryGate:
    """
    Decides whether this invocation evaluates at all.

    Outside the session the dedup set is cleared, once per local calendar
    day (guarded by lastResetDay), and the run short-circuits. Inside the
    session nothing is reset, so the first alert-worthy run of a new day
    already starts from a clean set.
    """

    def __init__(self, store: StateStore, is_open: Optional[Callable[[datetime], bool]] = None):
        self.store = store
        self.is_open = is_open or is_trading_hours

    async def check(self, now: datetime) -> bool:
        if self.is_open(now):
            return True

        today = trading_date(now)
        last_reset = await self.store.get_str(KEY_LAST_RESET_DAY)
        if last_reset != today:
            await self.store.reset_dedup(today)
            log.info("dedup_reset", day=today, previous=last_reset or None)
        return False
