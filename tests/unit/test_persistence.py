"""Tests for the key-value persistence backends and settings storage."""

from __future__ import annotations

import json

import pytest

from taskmind.constants import SETTINGS_KEY
from taskmind.models import AppSettings
from taskmind.store.persistence import JsonFileStore, MemoryStore
from taskmind.store.settings import load_app_settings, save_app_settings


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_missing_key_is_none(self):
        assert MemoryStore().load("nope") is None

    def test_save_then_load(self):
        store = MemoryStore()
        store.save("k", "v1")
        store.save("k", "v2")
        assert store.load("k") == "v2"

    def test_initial_values_copied(self):
        initial = {"k": "v"}
        store = MemoryStore(initial)
        store.save("k", "changed")
        assert initial == {"k": "v"}


class TestJsonFileStore:
    """Tests for JsonFileStore."""

    def test_missing_key_is_none(self, tmp_path):
        assert JsonFileStore(tmp_path).load("taskmind_tasks") is None

    def test_save_creates_directory_and_file(self, tmp_path):
        directory = tmp_path / "nested" / "data"
        store = JsonFileStore(directory)
        store.save("taskmind_tasks", "[]")
        assert (directory / "taskmind_tasks.json").read_text(encoding="utf-8") == "[]"
        assert store.load("taskmind_tasks") == "[]"

    def test_last_write_wins(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.save("k", "first")
        store.save("k", "second")
        assert store.load("k") == "second"

    def test_no_temp_files_left(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.save("k", "value")
        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", "has space"])
    def test_invalid_keys_rejected(self, tmp_path, key):
        with pytest.raises(ValueError, match="Invalid storage key"):
            JsonFileStore(tmp_path).save(key, "x")

    def test_unicode_round_trip(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.save("k", "Überprüfen ✅")
        assert store.load("k") == "Überprüfen ✅"


class TestAppSettingsStorage:
    """Tests for load_app_settings / save_app_settings."""

    def test_defaults_when_missing(self):
        assert load_app_settings(MemoryStore()) == AppSettings()

    def test_defaults_when_corrupt(self):
        store = MemoryStore({SETTINGS_KEY: "{not json"})
        assert load_app_settings(store) == AppSettings()

    def test_defaults_when_invalid_shape(self):
        store = MemoryStore({SETTINGS_KEY: json.dumps({"autoSave": "maybe"})})
        assert load_app_settings(store) == AppSettings()

    def test_saved_with_camel_case_keys(self):
        store = MemoryStore()
        save_app_settings(
            store, AppSettings(gemini_api_key="k", custom_instructions="Skip newsletters")
        )
        data = json.loads(store.load(SETTINGS_KEY))
        assert data["geminiApiKey"] == "k"
        assert data["customInstructions"] == "Skip newsletters"
        assert data["autoSave"] is True
        assert data["googleDriveConnected"] is False

    def test_round_trip(self):
        store = MemoryStore()
        settings = AppSettings(gemini_api_key="k", auto_save=False, google_drive_connected=True)
        save_app_settings(store, settings)
        assert load_app_settings(store) == settings
