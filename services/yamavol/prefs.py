"""
Atomic key/value preference storage.

Holds the handful of user choices that must survive a restart - today just
the amplifier host.  Values are kept in a flat JSON object.  Writes are
atomic (temp file + rename) so a crash mid-write never corrupts the file.

Storage locations (first existing, then first writable wins):
  1. prefs.path from config.json
  2. /etc/yamaha-volume/prefs.json        (system install)
  3. ~/.config/yamaha-volume/prefs.json   (per-user fallback)
"""

import json
import logging
import os
import tempfile

from .config import cfg

logger = logging.getLogger("yamaha-volume.prefs")

AMP_HOST_KEY = "yamahaAmpIP"
DEFAULT_AMP_HOST = "192.168.10.107"

STORE_PATHS = [
    "/etc/yamaha-volume/prefs.json",
    os.path.join(os.path.expanduser("~"), ".config", "yamaha-volume", "prefs.json"),
]


def _find_store_path():
    """Find the best preference path (configured, first existing, or first writable)."""
    configured = cfg("prefs", "path")
    if configured:
        return os.path.expanduser(configured)
    for path in STORE_PATHS:
        if os.path.exists(path):
            return path
    for path in STORE_PATHS:
        d = os.path.dirname(path)
        if os.path.isdir(d) and os.access(d, os.W_OK):
            return path
    return STORE_PATHS[-1]


class PreferenceStore:
    """Read/write string preferences in a JSON file."""

    def __init__(self, path: str | None = None):
        self.path = path or _find_store_path()

    def _load(self) -> dict:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not read preferences from %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Preferences in %s are not a JSON object - ignoring", self.path)
            return {}
        return data

    def get(self, key: str, default: str | None = None) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else default

    def set(self, key: str, value: str) -> None:
        """Atomically store one preference, keeping the others."""
        data = self._load()
        data[key] = value

        d = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(d, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=d, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(tmp, self.path)
        except Exception:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise
        logger.debug("Saved preference %s to %s", key, self.path)
