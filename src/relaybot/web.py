"""Tiny HTTP server: health check plus read-only access to uploaded files."""

from __future__ import annotations

import logging
from pathlib import Path

from aiohttp import web

_LOG = logging.getLogger(__name__)

HEALTH_TEXT = "relaybot is running!"


async def _health(request: web.Request) -> web.Response:
    return web.Response(text=HEALTH_TEXT)


def create_app(uploads_dir: str | Path) -> web.Application:
    uploads = Path(uploads_dir)
    uploads.mkdir(parents=True, exist_ok=True)
    app = web.Application()
    app.router.add_get("/", _health)
    app.router.add_static("/uploads", uploads, show_index=False, follow_symlinks=False)
    return app


async def start_file_server(app: web.Application, port: int, host: str = "0.0.0.0") -> web.AppRunner:
    """Start serving *app*; the caller owns the returned runner and must clean it up."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    _LOG.info("File server running on port %s", port)
    return runner
