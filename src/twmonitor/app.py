from __future__ import annotations

import hmac
from typing import Awaitable, Callable, Optional

import structlog
from aiohttp import web

from twmonitor.config import MonitorConfig
from twmonitor.main import RunResult, run_once

log = structlog.get_logger("app")

Runner = Callable[[MonitorConfig], Awaitable[RunResult]]

CFG_KEY = web.AppKey("cfg", MonitorConfig)
RUNNER_KEY = web.AppKey("runner", object)


def _authorized(request: web.Request, secret: Optional[str]) -> bool:
    if not secret:
        return False
    got = request.headers.get("Authorization", "")
    expected = f"Bearer {secret}".encode("utf-8")
    return hmac.compare_digest(got.encode("utf-8", "surrogateescape"), expected)


async def handle_monitor(request: web.Request) -> web.Response:
    """Cron trigger: no input besides the bearer secret; the clock is read server-side."""
    cfg = request.app[CFG_KEY]
    if not _authorized(request, cfg.cron_secret):
        log.warning("trigger_unauthorized", remote=request.remote)
        return web.Response(status=401, text="Unauthorized")

    runner: Runner = request.app[RUNNER_KEY]
    result = await runner(cfg)

    if result.status == "paused":
        return web.json_response({"success": True, "paused": True, "message": result.message})
    if result.ok:
        return web.json_response({"success": True, "alertsSent": result.alerts_sent})
    if result.status == "config_error":
        return web.json_response(
            {"success": False, "message": "Server configuration error: missing notification credentials."},
            status=500,
        )
    return web.json_response({"success": False, "message": "An internal error occurred."}, status=500)


def create_app(cfg: MonitorConfig, runner: Optional[Runner] = None) -> web.Application:
    app = web.Application()
    app[CFG_KEY] = cfg
    app[RUNNER_KEY] = runner or run_once
    app.router.add_get("/api/monitor", handle_monitor)
    return app


def serve(cfg: MonitorConfig) -> None:
    if not cfg.cron_secret:
        log.warning("cron_secret_missing_all_triggers_rejected")
    web.run_app(create_app(cfg), host=cfg.http_host, port=cfg.http_port)
