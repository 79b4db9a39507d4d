# src/twmonitor/alerts/notifiers.py
from __future__ import annotations
from typing import Protocol

import structlog

log = structlog.get_logger("notifier")

class Notifier(Protocol):
    """One formatted text block in, delivered-or-not out. Must not raise on transport errors."""
    name: str

    async def send(self, text: str) -> bool: ...

class ConsoleNotifier:
    """Dry-run channel: prints the batch instead of pushing it anywhere."""
    name = "console"

    async def send(self, text: str) -> bool:
        print(text, flush=True)
        log.info("console_notified", chars=len(text))
        return True
