"""Task list persistence, reconciliation and backup."""

from taskmind.store.backup import BackupUploader, DriveBackup
from taskmind.store.persistence import JsonFileStore, KeyValueStore, MemoryStore
from taskmind.store.reconcile import merge, toggle
from taskmind.store.settings import load_app_settings, save_app_settings
from taskmind.store.task_store import TaskStore

__all__ = [
    "BackupUploader",
    "DriveBackup",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "TaskStore",
    "load_app_settings",
    "merge",
    "save_app_settings",
    "toggle",
]
