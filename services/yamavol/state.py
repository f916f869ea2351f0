"""
In-memory volume state for one amplifier.

AmpVolume holds the single authoritative raw volume (whatever the amplifier
last confirmed) and the amplifier host.  Front ends either read the
attributes directly or subscribe() to be called after every change.

Volume calls never raise: an amplifier failure or an unusable value (NaN)
is logged and the previous volume is kept.  Concurrent calls are not
ordered - whichever response arrives last wins.
"""

import logging
from typing import Callable

from .amplifier import AmplifierClient, AmplifierError
from .config import cfg
from .prefs import AMP_HOST_KEY, DEFAULT_AMP_HOST, PreferenceStore
from .volume_scale import format_display, to_db, to_percent

logger = logging.getLogger("yamaha-volume.state")

INITIAL_VOLUME = 100

Listener = Callable[["AmpVolume"], None]


class AmpVolume:
    """Observable volume + host for the amplifier the user picked."""

    def __init__(self, client: AmplifierClient, store: PreferenceStore):
        self._client = client
        self._store = store
        self._listeners: list[Listener] = []
        self.volume = INITIAL_VOLUME
        self._host = store.get(AMP_HOST_KEY) or cfg("amp", "host", default=DEFAULT_AMP_HOST)

    # -- host --

    @property
    def host(self) -> str:
        return self._host

    @host.setter
    def host(self, value: str) -> None:
        value = value.strip()
        if not value:
            raise ValueError("amplifier host must not be empty")
        self._host = value
        self._store.set(AMP_HOST_KEY, value)
        logger.info("Amplifier host set to %s", value)
        self._notify()

    # -- derived --

    @property
    def db(self) -> float:
        return to_db(self.volume)

    @property
    def percent(self) -> int:
        return to_percent(self.volume)

    def snapshot(self) -> dict:
        return {
            "host": self.host,
            "volume": self.volume,
            "db": self.db,
            "percent": self.percent,
            "display": format_display(self.volume),
        }

    # -- subscriptions --

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener(self) after every change.  Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Volume listener %r failed", listener)

    def _confirm(self, raw: int) -> int:
        self.volume = raw
        self._notify()
        return raw

    # -- amplifier calls --

    async def refresh(self) -> int | None:
        """Fetch the volume from the amplifier.  None if that failed."""
        host = self.host
        try:
            raw = await self._client.fetch_volume(host)
        except AmplifierError as e:
            logger.warning("Fetch volume error: %s", e)
            return None
        return self._confirm(raw)

    async def set_volume(self, raw: int) -> int | None:
        try:
            sent = await self._client.set_volume(self.host, raw)
        except (AmplifierError, ValueError) as e:
            logger.warning("Set volume error: %s", e)
            return None
        return self._confirm(sent)

    async def set_volume_db(self, db: float) -> int | None:
        try:
            sent = await self._client.set_volume_db(self.host, db)
        except (AmplifierError, ValueError) as e:
            logger.warning("Set volume (%.1f dB) error: %s", db, e)
            return None
        return self._confirm(sent)

    async def set_volume_percent(self, percent: float) -> int | None:
        try:
            sent = await self._client.set_volume_percent(self.host, percent)
        except (AmplifierError, ValueError) as e:
            logger.warning("Set volume (%s%%) error: %s", percent, e)
            return None
        return self._confirm(sent)
