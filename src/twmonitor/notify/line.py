from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Optional

import aiohttp
import structlog

log = structlog.get_logger("line")

LINE_PUSH_URL = "https://api.line.me/v2/bot/message/push"

# LINE rejects text messages longer than this
MAX_TEXT_CHARS = 5000

@dataclass(slots=True)
class LineConfig:
    channel_access_token: str
    user_id: str                # push target: user, group or room id
    timeout_s: float = 8.0

def config_from_env() -> LineConfig:
    """Raises RuntimeError when CHANNEL_ACCESS_TOKEN / USER_ID are missing."""
    token = os.getenv("CHANNEL_ACCESS_TOKEN")
    user_id = os.getenv("USER_ID")
    if not token or not user_id:
        raise RuntimeError("CHANNEL_ACCESS_TOKEN or USER_ID is not set")
    return LineConfig(channel_access_token=token, user_id=user_id)

class LineNotifier:
    """LINE Messaging API push: one text message per call, no retries."""
    name = "line"

    def __init__(self, cfg: LineConfig, session: Optional[aiohttp.ClientSession] = None):
        self.cfg = cfg
        self._session = session

    def _payload(self, text: str) -> dict:
        if len(text) > MAX_TEXT_CHARS:
            text = text[: MAX_TEXT_CHARS - 1] + "…"
        return {"to": self.cfg.user_id, "messages": [{"type": "text", "text": text}]}

    async def send(self, text: str) -> bool:
        headers = {"Authorization": f"Bearer {self.cfg.channel_access_token}"}
        session = self._session
        owned = session is None
        if owned:
            session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.cfg.timeout_s))
        try:
            async with session.post(LINE_PUSH_URL, json=self._payload(text), headers=headers) as resp:
                if 200 <= resp.status < 300:
                    log.info("line_sent", chars=len(text))
                    return True
                detail = await _maybe_text(resp)
                log.warning("line_send_failed", status=resp.status, body=detail)
                return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("line_network_error", err=str(e))
            return False
        finally:
            if owned:
                await session.close()

async def _maybe_text(resp: aiohttp.ClientResponse) -> str:
    try:
        return await resp.text()
    except Exception:
        return "<no body>"
