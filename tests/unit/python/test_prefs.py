"""Tests for services/yamavol/prefs.py - atomic JSON preference storage."""

import json
import logging
import os

from yamavol.prefs import AMP_HOST_KEY, PreferenceStore


class TestPreferenceStore:
    def test_missing_file_returns_default(self, store):
        assert store.get(AMP_HOST_KEY) is None
        assert store.get(AMP_HOST_KEY, "fallback") == "fallback"

    def test_set_then_get(self, store):
        store.set(AMP_HOST_KEY, "10.0.0.5")
        assert store.get(AMP_HOST_KEY) == "10.0.0.5"

    def test_creates_parent_directory(self, store, prefs_path):
        assert not prefs_path.parent.exists()
        store.set(AMP_HOST_KEY, "10.0.0.5")
        assert prefs_path.exists()

    def test_persists_across_instances(self, store, prefs_path):
        store.set(AMP_HOST_KEY, "amp.local")
        assert PreferenceStore(str(prefs_path)).get(AMP_HOST_KEY) == "amp.local"

    def test_keeps_other_keys(self, store, prefs_path):
        store.set("other", "value")
        store.set(AMP_HOST_KEY, "10.0.0.5")
        assert json.loads(prefs_path.read_text()) == {"other": "value", AMP_HOST_KEY: "10.0.0.5"}

    def test_no_temp_files_left_behind(self, store, prefs_path):
        store.set(AMP_HOST_KEY, "a")
        store.set(AMP_HOST_KEY, "b")
        assert os.listdir(prefs_path.parent) == ["prefs.json"]

    def test_corrupt_file_returns_default(self, store, prefs_path, caplog):
        prefs_path.parent.mkdir(parents=True)
        prefs_path.write_text("{not json")
        with caplog.at_level(logging.WARNING):
            assert store.get(AMP_HOST_KEY, "fallback") == "fallback"
        assert any("Could not read preferences" in r.message for r in caplog.records)

    def test_corrupt_file_is_replaced_on_write(self, store, prefs_path):
        prefs_path.parent.mkdir(parents=True)
        prefs_path.write_text("[1, 2]")
        store.set(AMP_HOST_KEY, "10.0.0.5")
        assert store.get(AMP_HOST_KEY) == "10.0.0.5"

    def test_non_string_value_ignored(self, store, prefs_path):
        prefs_path.parent.mkdir(parents=True)
        prefs_path.write_text(json.dumps({AMP_HOST_KEY: 42}))
        assert store.get(AMP_HOST_KEY, "fallback") == "fallback"

    def test_path_from_config(self, write_config, tmp_path):
        path = tmp_path / "configured.json"
        write_config({"prefs": {"path": str(path)}})
        assert PreferenceStore().path == str(path)
