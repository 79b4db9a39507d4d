from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Optional

import aiohttp
import structlog

log = structlog.get_logger("telegram")

# --------- config & client ----------

@dataclass(slots=True)
class TelegramConfig:
    bot_token: str
    chat_id: str                # personal chat id or group id
    parse_mode: Optional[str] = None  # "HTML" or "MarkdownV2" or None
    timeout_s: float = 8.0

def config_from_env() -> TelegramConfig:
    """Raises RuntimeError when TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID are missing."""
    token = os.getenv("TELEGRAM_BOT_TOKEN")
    chat_id = os.getenv("TELEGRAM_CHAT_ID")
    if not token or not chat_id:
        raise RuntimeError("TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID is not set")
    return TelegramConfig(bot_token=token, chat_id=chat_id, parse_mode=os.getenv("TELEGRAM_PARSE_MODE") or None)

class TelegramNotifier:
    """
    Single-shot Telegram sender. One attempt per batch: a failure is logged
    and reported as False, never retried.
    """
    name = "telegram"

    def __init__(self, cfg: TelegramConfig, session: Optional[aiohttp.ClientSession] = None):
        self.cfg = cfg
        self._session = session

    async def send(self, text: str) -> bool:
        url = f"https://api.telegram.org/bot{self.cfg.bot_token}/sendMessage"
        payload = {"chat_id": self.cfg.chat_id, "text": text}
        if self.cfg.parse_mode:
            payload["parse_mode"] = self.cfg.parse_mode

        session = self._session
        owned = session is None
        if owned:
            session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.cfg.timeout_s))
        try:
            async with session.post(url, data=payload) as resp:
                if resp.status == 200:
                    log.info("telegram_sent", chars=len(text))
                    return True
                detail = await _maybe_text(resp)
                log.warning("telegram_send_failed", status=resp.status, body=detail)
                return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("telegram_network_error", err=str(e))
            return False
        finally:
            if owned:
                await session.close()

async def _maybe_text(resp: aiohttp.ClientResponse) -> str:
    try:
        return await resp.text()
    except Exception:
        return "<no body>"
