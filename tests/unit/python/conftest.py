"""Shared fixtures for Yamaha volume unit tests."""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import aiohttp
import pytest

# Add services/ to sys.path so `from yamavol.config import cfg` works
SERVICES_DIR = Path(__file__).resolve().parents[3] / "services"
sys.path.insert(0, str(SERVICES_DIR))

from amp_simulator import fake_amplifier  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch):
    """Reset the config cache and keep real config files out of every test."""
    import yamavol.config as config_mod
    monkeypatch.setattr(config_mod, "_SEARCH_PATHS", [str(tmp_path / "no-config.json")])
    config_mod._config = None
    yield
    config_mod._config = None


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Provide a temp config file path and patch _SEARCH_PATHS to use it.

    Returns the Path object - write JSON to it with write_text() or use
    the write_config fixture for convenience.
    """
    import yamavol.config as config_mod

    path = tmp_path / "config.json"
    monkeypatch.setattr(config_mod, "_SEARCH_PATHS", [str(path)])
    return path


@pytest.fixture
def write_config(config_file):
    """Write a dict as JSON to the temp config file.

    Usage:
        def test_something(write_config):
            write_config({"amp": {"host": "10.0.0.5"}})
            assert cfg("amp", "host") == "10.0.0.5"
    """
    import yamavol.config as config_mod

    def _write(data: dict):
        config_file.write_text(json.dumps(data))
        config_mod._config = None  # force re-read
        return config_file

    return _write


@pytest.fixture
def mock_config(monkeypatch):
    """Directly set the config dict without file I/O."""
    import yamavol.config as config_mod

    def _mock(data: dict):
        monkeypatch.setattr(config_mod, "_config", data)

    return _mock


@pytest.fixture
def prefs_path(tmp_path):
    return tmp_path / "prefs" / "prefs.json"


@pytest.fixture
def store(prefs_path):
    from yamavol.prefs import PreferenceStore
    return PreferenceStore(str(prefs_path))


@pytest.fixture
async def amp_sim():
    """A running fake amplifier: (simulator, "127.0.0.1:<port>")."""
    async with fake_amplifier() as (simulator, host):
        yield simulator, host


@pytest.fixture
async def session():
    async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=2.0)) as s:
        yield s


@pytest.fixture
def client(session):
    from yamavol.amplifier import AmplifierClient
    return AmplifierClient(session)


@pytest.fixture
def amp(client, store, amp_sim):
    """AmpVolume pointed at the fake amplifier."""
    from yamavol.prefs import AMP_HOST_KEY
    from yamavol.state import AmpVolume

    _simulator, host = amp_sim
    store.set(AMP_HOST_KEY, host)
    return AmpVolume(client, store)


@pytest.fixture
def idle_client():
    """AmplifierClient for tests that never touch the network."""
    from yamavol.amplifier import AmplifierClient
    return AmplifierClient(MagicMock(spec=aiohttp.ClientSession))
