"""Persisted app settings (API key, custom rules, backup preferences)."""

from __future__ import annotations

import json

from pydantic import ValidationError

from taskmind.constants import SETTINGS_KEY
from taskmind.logging import get_logger
from taskmind.models import AppSettings
from taskmind.store.persistence import KeyValueStore

log = get_logger("taskmind.store.settings")


def load_app_settings(persistence: KeyValueStore, key: str = SETTINGS_KEY) -> AppSettings:
    """Load saved settings, falling back to defaults when absent or unreadable."""
    raw = persistence.load(key)
    if not raw:
        return AppSettings()
    try:
        return AppSettings.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        log.warning("app_settings_unreadable", error=str(exc))
        return AppSettings()


def save_app_settings(
    persistence: KeyValueStore, settings: AppSettings, key: str = SETTINGS_KEY
) -> None:
    """Persist ``settings`` with camelCase keys."""
    persistence.save(key, settings.model_dump_json(by_alias=True, indent=2))
    log.debug("app_settings_saved", custom_rules=bool(settings.custom_instructions))
