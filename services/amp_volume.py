#!/usr/bin/env python3
"""
Yamaha Volume service (yamaha-volume)

Keeps the current volume of one Yamaha amplifier and exposes the controls of
the menu-bar popover over a small local HTTP API: read the volume, refresh it
from the amplifier, set it as raw steps / dB / percent, and change which
amplifier to talk to.

Port: 8771 (service.port in config.json)
"""

import logging
import os
import sys

import aiohttp
from aiohttp import web

# Ensure services/ is on the path for sibling imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
from yamavol.amplifier import AmplifierClient
from yamavol.config import cfg
from yamavol.http_utils import cors_middleware, is_number, read_json_object
from yamavol.prefs import PreferenceStore
from yamavol.state import AmpVolume

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("yamaha-volume")

DEFAULT_PORT = 8771
DEFAULT_BIND = "127.0.0.1"
DEFAULT_TIMEOUT = 2.0


def listen_port() -> int:
    """service.port, or DEFAULT_PORT when it is missing or not a valid TCP port."""
    port = cfg("service", "port", default=DEFAULT_PORT)
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        logger.warning("Invalid service.port %r - using %d", port, DEFAULT_PORT)
        return DEFAULT_PORT
    return port


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------
class AmpService:
    """Owns the HTTP session and the AmpVolume state for the web app."""

    def __init__(self, amp: AmpVolume | None = None):
        self.amp = amp
        self._session: aiohttp.ClientSession | None = None

    async def start(self):
        if self.amp is None:
            timeout = cfg("amp", "timeout", default=DEFAULT_TIMEOUT)
            if not is_number(timeout) or timeout <= 0:
                timeout = DEFAULT_TIMEOUT
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=float(timeout)),
            )
            self.amp = AmpVolume(AmplifierClient(self._session), PreferenceStore())
        if await self.amp.refresh() is None:
            logger.warning("Amplifier %s not reachable at startup - volume unknown",
                           self.amp.host)
        logger.info("Service started (amp: %s, volume: %s)",
                    self.amp.host, self.amp.volume)

    async def stop(self):
        if self._session:
            await self._session.close()
            self._session = None
        logger.info("Service stopped")


SERVICE_KEY = web.AppKey("service", AmpService)


def _amp(request: web.Request) -> AmpVolume:
    return request.app[SERVICE_KEY].amp


# ---------------------------------------------------------------------------
# HTTP handlers
# ---------------------------------------------------------------------------
async def handle_status(request: web.Request) -> web.Response:
    """GET /amp/status - current host and volume in all three units."""
    return web.json_response(_amp(request).snapshot())


async def handle_refresh(request: web.Request) -> web.Response:
    """POST /amp/refresh - re-read the volume from the amplifier."""
    amp = _amp(request)
    if await amp.refresh() is None:
        return web.json_response(
            {"error": "amplifier unreachable", **amp.snapshot()}, status=502)
    return web.json_response({"status": "ok", **amp.snapshot()})


async def handle_volume_set(request: web.Request) -> web.Response:
    """POST /amp/volume - set from exactly one of volume (raw), db or percent."""
    data = await read_json_object(request)
    if data is None:
        return web.json_response({"error": "invalid json"}, status=400)

    given = [k for k in ("volume", "db", "percent") if k in data]
    if len(given) != 1:
        return web.json_response(
            {"error": "exactly one of 'volume', 'db', 'percent' required"}, status=400)
    key = given[0]
    value = data[key]
    if not is_number(value) or (key == "volume" and not isinstance(value, int)):
        return web.json_response({"error": f"invalid '{key}'"}, status=400)

    amp = _amp(request)
    if key == "volume":
        result = await amp.set_volume(value)
    elif key == "db":
        result = await amp.set_volume_db(float(value))
    else:
        result = await amp.set_volume_percent(value)

    if result is None:
        return web.json_response(
            {"error": "amplifier unreachable", **amp.snapshot()}, status=502)
    return web.json_response({"status": "ok", **amp.snapshot()})


async def handle_host(request: web.Request) -> web.Response:
    """POST /amp/host - switch to (and remember) another amplifier."""
    data = await read_json_object(request)
    if data is None:
        return web.json_response({"error": "invalid json"}, status=400)

    host = data.get("host")
    if not isinstance(host, str) or not host.strip():
        return web.json_response({"error": "missing or invalid 'host'"}, status=400)

    amp = _amp(request)
    amp.host = host
    return web.json_response({"status": "ok", **amp.snapshot()})


# ---------------------------------------------------------------------------
# App lifecycle
# ---------------------------------------------------------------------------
async def on_startup(app: web.Application):
    await app[SERVICE_KEY].start()


async def on_cleanup(app: web.Application):
    await app[SERVICE_KEY].stop()


def create_app(amp: AmpVolume | None = None) -> web.Application:
    app = web.Application(middlewares=[cors_middleware])
    app[SERVICE_KEY] = AmpService(amp)
    app.router.add_get("/amp/status", handle_status)
    app.router.add_post("/amp/refresh", handle_refresh)
    app.router.add_post("/amp/volume", handle_volume_set)
    app.router.add_post("/amp/host", handle_host)
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app


if __name__ == "__main__":
    app = create_app()
    web.run_app(
        app,
        host=cfg("service", "bind", default=DEFAULT_BIND),
        port=listen_port(),
        print=lambda msg: logger.info(msg),
    )
