"""
Yamaha amplifier client - reads and sets volume via the YamahaExtendedControl
HTTP API.

    GET /YamahaExtendedControl/v1/main/getStatus            → {"volume": 0..161, ...}
    GET /YamahaExtendedControl/v1/main/setVolume?volume=N   → body ignored

The client is stateless: every call names the host it talks to and performs
exactly one request on the shared aiohttp session.  Timeouts come from the
session.  Failures are raised as AmplifierError subclasses; deciding what to
do about them is the caller's job.
"""

import asyncio
import json
import logging

import aiohttp

from .volume_scale import clamp_raw, from_db, from_percent

logger = logging.getLogger("yamaha-volume.amp")

API_BASE = "/YamahaExtendedControl/v1/main"


class AmplifierError(Exception):
    """Base for everything that can go wrong talking to the amplifier."""

    def __init__(self, host: str, message: str):
        super().__init__(f"{host}: {message}")
        self.host = host


class AmplifierNetworkError(AmplifierError):
    """Connection refused, timeout, DNS failure and friends."""


class AmplifierParseError(AmplifierError):
    """The amplifier answered, but not with the JSON we expected."""


class AmplifierClient:
    """Volume control for a Yamaha MusicCast amplifier over HTTP."""

    def __init__(self, session: aiohttp.ClientSession):
        self._session = session

    @staticmethod
    def status_url(host: str) -> str:
        return f"http://{host}{API_BASE}/getStatus"

    @staticmethod
    def set_volume_url(host: str, raw: int) -> str:
        return f"http://{host}{API_BASE}/setVolume?volume={clamp_raw(raw)}"

    async def _get(self, host: str, url: str) -> tuple[int, bytes]:
        try:
            async with self._session.get(url) as resp:
                return resp.status, await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise AmplifierNetworkError(host, f"request failed: {e!r}") from e

    async def fetch_volume(self, host: str) -> int:
        """Read the current raw volume (0-161)."""
        status, body = await self._get(host, self.status_url(host))
        try:
            data = json.loads(body)
        except ValueError as e:
            raise AmplifierParseError(host, f"getStatus (HTTP {status}) is not JSON") from e
        if not isinstance(data, dict):
            raise AmplifierParseError(host, "getStatus is not a JSON object")
        vol = data.get("volume")
        # bool is an int subclass; a JSON true is not a volume
        if not isinstance(vol, int) or isinstance(vol, bool):
            raise AmplifierParseError(host, f"getStatus has no integer 'volume': {vol!r}")
        if vol != clamp_raw(vol):
            logger.warning("Amplifier %s reported out-of-range volume %d", host, vol)
        vol = clamp_raw(vol)
        logger.info("Amplifier %s volume read: %d", host, vol)
        return vol

    async def set_volume(self, host: str, raw: int) -> int:
        """Clamp and send a raw volume.  Returns the value that was sent."""
        clamped = clamp_raw(raw)
        if clamped != raw:
            logger.debug("Volume %s clamped to %d", raw, clamped)
        status, _ = await self._get(host, self.set_volume_url(host, clamped))
        logger.info("-> Amplifier %s volume: %d (HTTP %d)", host, clamped, status)
        return clamped

    async def set_volume_db(self, host: str, db: float) -> int:
        return await self.set_volume(host, from_db(db))

    async def set_volume_percent(self, host: str, percent: float) -> int:
        return await self.set_volume(host, from_percent(percent))
