from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal, Optional

from dotenv import load_dotenv

from twmonitor.utils.types import (
    BENCHMARK_SYMBOL,
    DEFAULT_INSTRUMENTS,
    Instrument,
    InstrumentKind,
)

Channel = Literal["line", "telegram", "console"]


def _instruments_from_env(raw: Optional[str]) -> tuple[Instrument, ...]:
    """
    SYMBOLS="^TWII,0050.TW,..." overrides the basket. Known symbols keep their
    display names; the benchmark is ^TWII when present, else the first entry.
    """
    if not raw:
        return DEFAULT_INSTRUMENTS
    symbols = [s.strip().upper() for s in raw.split(",") if s.strip()]
    if not symbols:
        return DEFAULT_INSTRUMENTS
    known = {i.symbol: i.name for i in DEFAULT_INSTRUMENTS}
    bench = BENCHMARK_SYMBOL if BENCHMARK_SYMBOL in symbols else symbols[0]
    return tuple(
        Instrument(s, known.get(s, s), InstrumentKind.BENCHMARK if s == bench else InstrumentKind.FUND)
        for s in symbols
    )


@dataclass(slots=True)
class MonitorConfig:
    redis_url: str = "redis://localhost:6379/0"
    cron_secret: Optional[str] = None
    channel: Channel = "line"
    instruments: tuple[Instrument, ...] = field(default_factory=lambda: DEFAULT_INSTRUMENTS)
    yahoo_timeout_s: float = 8.0
    yahoo_max_retries: int = 2
    http_host: str = "0.0.0.0"
    http_port: int = 8080

    @classmethod
    def from_env(cls) -> "MonitorConfig":
        load_dotenv()
        channel = os.getenv("NOTIFY_CHANNEL", "line").strip().lower()
        if channel not in ("line", "telegram", "console"):
            raise ValueError(f"Unsupported NOTIFY_CHANNEL: {channel}")
        return cls(
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            cron_secret=os.getenv("CRON_SECRET") or None,
            channel=channel,  # type: ignore[arg-type]
            instruments=_instruments_from_env(os.getenv("SYMBOLS")),
            yahoo_timeout_s=float(os.getenv("YAHOO_TIMEOUT_S", "8")),
            yahoo_max_retries=int(os.getenv("YAHOO_MAX_RETRIES", "2")),
            http_host=os.getenv("HTTP_HOST", "0.0.0.0"),
            http_port=int(os.getenv("HTTP_PORT", "8080")),
        )
