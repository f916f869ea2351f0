"""
Shared configuration loader for the Yamaha volume service.

Loads a single JSON config file.  Search order:
  1. /etc/yamaha-volume/config.json   (system install)
  2. config.json                      (CWD - handy for local dev)
  3. ../../config/default.json        (repo fallback)

The amplifier host chosen by the user is NOT stored here; it lives in the
preference store (see prefs.py).  amp.host is only the fallback when no
preference has been saved yet.

Usage:
    from yamavol.config import cfg

    amp_host  = cfg("amp", "host", default="192.168.10.107")
    timeout   = cfg("amp", "timeout", default=2.0)
    port      = cfg("service", "port", default=8771)
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

_config: dict | None = None

_SEARCH_PATHS = [
    "/etc/yamaha-volume/config.json",
    "config.json",
    os.path.join(os.path.dirname(__file__), "..", "..", "config", "default.json"),
]

KNOWN_SECTIONS = ("amp", "service", "prefs")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate(config: dict) -> None:
    """Log problems with a freshly loaded config.  Never raises."""
    for section in config:
        if section not in KNOWN_SECTIONS:
            logger.warning("Config: unknown section '%s' (ignored)", section)

    amp = config.get("amp")
    if isinstance(amp, dict):
        host = amp.get("host")
        if host is not None and (not isinstance(host, str) or not host.strip()):
            logger.warning("Config: amp.host must be a non-empty string, got %r", host)
        timeout = amp.get("timeout")
        if timeout is not None and (not _is_number(timeout) or timeout <= 0):
            logger.warning("Config: amp.timeout must be a positive number, got %r", timeout)
    elif amp is not None:
        logger.warning("Config: 'amp' must be an object")

    service = config.get("service")
    if isinstance(service, dict):
        port = service.get("port")
        if port is not None and (not isinstance(port, int) or isinstance(port, bool)
                                 or not 0 < port < 65536):
            logger.error("Config: service.port %r is not a valid TCP port", port)


def load_config() -> dict:
    """Load config from the first JSON file found. Cached after first call."""
    global _config
    if _config is not None:
        return _config

    for path in _SEARCH_PATHS:
        try:
            with open(path) as f:
                loaded = json.load(f)
        except FileNotFoundError:
            continue
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in %s: %s", path, e)
            continue
        if not isinstance(loaded, dict):
            logger.error("Config in %s is not a JSON object - skipping", path)
            continue
        _config = loaded
        logger.info("Config loaded from %s", path)
        _validate(_config)
        return _config

    logger.warning("No config.json found - using empty config")
    _config = {}
    return _config


def cfg(section: str, key: str | None = None, *, default=None):
    """Read a config value.

    cfg("amp")                       → config["amp"]
    cfg("amp", "host")               → config["amp"]["host"]
    cfg("amp", "timeout", default=2) → config["amp"]["timeout"] or 2
    """
    config = load_config()
    val = config.get(section)
    if key is None:
        return val if val is not None else default
    if isinstance(val, dict):
        return val.get(key, default)
    return default


def reload_config():
    """Force re-read from disk (for testing or hot-reload)."""
    global _config
    _config = None
    return load_config()
