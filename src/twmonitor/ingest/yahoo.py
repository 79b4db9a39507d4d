from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import aiohttp
import structlog

from twmonitor.ingest.parser import FetchError, parse_daily_history, parse_intraday_quote
from twmonitor.utils.backoff import backoff_sleep, retry_schedule
from twmonitor.utils.types import DailyHistory, IntradayQuote

log = structlog.get_logger("yahoo")

# Some Yahoo edges reject requests without a browser UA
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko)"


@dataclass(slots=True)
class YahooConfig:
    base_url: str = "https://query1.finance.yahoo.com"
    timeout_s: float = 8.0
    max_retries: int = 2          # extra attempts after the first, only for 429/5xx/network
    initial_backoff_s: float = 0.25
    max_backoff_s: float = 4.0
    history_range: str = "2mo"
    intraday_range: str = "1d"
    intraday_interval: str = "5m"

    def retry_delays(self) -> list[float]:
        return retry_schedule(self.initial_backoff_s, self.max_backoff_s, self.max_retries)


class YahooChartClient:
    """
    Snapshot source backed by the Yahoo Finance v8 chart endpoint.

    Usage:
        async with YahooChartClient(YahooConfig()) as src:
            hist = await src.fetch_daily_history("0050.TW")
            q = await src.fetch_intraday_quote("0050.TW")

    Every failure surfaces as FetchError so the assembler can drop the
    instrument without touching the others.
    """

    def __init__(self, cfg: Optional[YahooConfig] = None, session: Optional[aiohttp.ClientSession] = None):
        self.cfg = cfg or YahooConfig()
        self._session = session
        self._owns_session = session is None

    async def start(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.cfg.timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout, headers={"User-Agent": USER_AGENT})

    async def stop(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "YahooChartClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # ---------- public API ----------

    async def fetch_daily_history(self, symbol: str) -> DailyHistory:
        payload = await self._get_chart(symbol, rng=self.cfg.history_range, interval="1d")
        return parse_daily_history(payload, symbol)

    async def fetch_intraday_quote(self, symbol: str) -> IntradayQuote:
        payload = await self._get_chart(
            symbol, rng=self.cfg.intraday_range, interval=self.cfg.intraday_interval
        )
        return parse_intraday_quote(payload, symbol)

    # ---------- transport ----------

    def _url(self, symbol: str) -> str:
        return f"{self.cfg.base_url}/v8/finance/chart/{quote(symbol, safe='')}"

    async def _get_chart(self, symbol: str, *, rng: str, interval: str) -> Any:
        if self._session is None:
            await self.start()
        if self._session is None:
            raise RuntimeError("YahooChartClient session not started")

        url = self._url(symbol)
        params = {"range": rng, "interval": interval}
        delays = self.cfg.retry_delays()
        attempts = len(delays) + 1
        last_reason = "no attempt made"

        for attempt in range(1, attempts + 1):
            try:
                async with self._session.get(url, params=params) as resp:
                    if resp.status == 200:
                        try:
                            return await resp.json(content_type=None)
                        except ValueError as e:
                            raise FetchError(symbol, f"invalid json: {e}") from e
                    last_reason = f"http {resp.status}"
                    log.warning("yahoo_fetch_failed", symbol=symbol, status=resp.status, attempt=attempt)
                    # other 4xx: don't retry
                    if not (resp.status == 429 or 500 <= resp.status < 600):
                        raise FetchError(symbol, last_reason)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_reason = f"network: {e!r}"
                log.warning("yahoo_network_error", symbol=symbol, err=str(e), attempt=attempt)

            if attempt < attempts:
                await backoff_sleep(delays[attempt - 1])

        raise FetchError(symbol, last_reason)
