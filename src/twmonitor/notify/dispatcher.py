from __future__ import annotations

from typing import Sequence

import structlog

from twmonitor.alerts.formatting import format_batch, format_failure
from twmonitor.alerts.notifiers import Notifier
from twmonitor.utils.types import Alert

log = structlog.get_logger("dispatcher")


class NotificationDispatcher:
    """
    Batches every new alert of one invocation into a single outbound message.
    Never sends per-alert messages.
    """

    def __init__(self, notifier: Notifier):
        self.notifier = notifier

    async def dispatch(self, alerts: Sequence[Alert]) -> bool:
        if not alerts:
            return False
        text = format_batch(alerts)
        ok = await self.notifier.send(text)
        if ok:
            log.info("alerts_dispatched", count=len(alerts), channel=self.notifier.name)
        else:
            log.error("alerts_dispatch_failed", count=len(alerts), channel=self.notifier.name)
        return ok

    async def notify_failure(self, err: BaseException) -> None:
        """Best-effort failure notice; swallows its own errors."""
        try:
            await self.notifier.send(format_failure(err))
        except Exception as e:
            log.warning("failure_notice_failed", err=str(e))
