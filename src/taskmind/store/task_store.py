"""The task list and everything that writes to it.

TaskStore is the single owner of the mutable task list. It is loaded
once, every change is written back as the full list, listeners (a UI, the
CLI) are told about each change, and when a backup uploader is attached
a copy is sent to the cloud in the background.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Sequence

from pydantic import ValidationError

from taskmind.constants import DEFAULT_BACKUP_FILENAME, TASKS_KEY
from taskmind.errors import TaskNotFoundError
from taskmind.logging import get_logger
from taskmind.models import MergeMode, TaskRecord
from taskmind.store.backup import BackupUploader
from taskmind.store.persistence import KeyValueStore
from taskmind.store.reconcile import ensure_unique_ids, merge, toggle

log = get_logger("taskmind.store.task_store")

ChangeListener = Callable[[list[TaskRecord]], None]


class TaskStore:
    """Owns the persisted task list."""

    def __init__(
        self,
        persistence: KeyValueStore,
        *,
        backup: BackupUploader | None = None,
        backup_filename: str = DEFAULT_BACKUP_FILENAME,
        key: str = TASKS_KEY,
    ) -> None:
        self._persistence = persistence
        self._backup = backup
        self._backup_filename = backup_filename
        self._key = key
        self._tasks: list[TaskRecord] = []
        self._listeners: list[ChangeListener] = []
        self._pending_backups: set[asyncio.Task[None]] = set()

    @property
    def tasks(self) -> list[TaskRecord]:
        """A snapshot of the current list."""
        return list(self._tasks)

    def get(self, task_id: str) -> TaskRecord:
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    def set_backup(self, backup: BackupUploader | None) -> None:
        """Attach (or detach, with None) the cloud backup uploader."""
        self._backup = backup

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> list[TaskRecord]:
        """Read the list from persistence. Unreadable records are skipped."""
        raw = self._persistence.load(self._key)
        if not raw:
            self._tasks = []
            return self.tasks

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            log.error("task_list_unreadable", key=self._key, error=str(exc))
            self._tasks = []
            return self.tasks

        tasks: list[TaskRecord] = []
        for item in data if isinstance(data, list) else []:
            try:
                tasks.append(TaskRecord.from_dict(item))
            except (ValidationError, TypeError) as exc:
                log.warning("task_record_skipped", error=str(exc))

        self._tasks = ensure_unique_ids(tasks)
        log.info("task_list_loaded", count=len(self._tasks))
        return self.tasks

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def apply(
        self, incoming: Sequence[TaskRecord], mode: MergeMode | str
    ) -> list[TaskRecord]:
        """Merge newly extracted tasks into the list and persist it.

        Returns:
            The incoming records that made it into the list, with their
            final ids. Records dropped as duplicates are not included.
        """
        mode = MergeMode(mode)
        previous = len(self._tasks)
        merged = merge(self._tasks, incoming, mode)
        if mode is MergeMode.APPEND_DEDUP:
            kept = merged[: len(merged) - previous]
        else:
            kept = list(merged)

        if mode is MergeMode.REPLACE and previous and not merged:
            log.warning("replace_emptied_task_list", dropped=previous)

        self._commit(merged)
        log.info(
            "tasks_merged",
            mode=str(mode),
            incoming=len(incoming),
            kept=len(kept),
            total=len(merged),
        )
        return kept

    async def toggle(self, task_id: str) -> TaskRecord:
        """Flip completion on one task and persist.

        Raises:
            TaskNotFoundError: if no task has ``task_id``.
        """
        updated = toggle(self._tasks, task_id)
        self._commit(updated)
        return self.get(task_id)

    async def clear(self) -> None:
        """Remove every task. Only ever called on explicit user request."""
        count = len(self._tasks)
        self._commit([])
        log.info("tasks_cleared", count=count)

    # ------------------------------------------------------------------
    # Persistence and backup
    # ------------------------------------------------------------------

    @staticmethod
    def _serialize(tasks: Sequence[TaskRecord]) -> str:
        return json.dumps([task.to_dict() for task in tasks], indent=2)

    def _commit(self, tasks: list[TaskRecord]) -> None:
        """Save ``tasks`` and only then make them the current list."""
        payload = self._serialize(tasks)
        self._persistence.save(self._key, payload)
        self._tasks = tasks

        for listener in list(self._listeners):
            try:
                listener(self.tasks)
            except Exception:
                log.exception("task_listener_failed")

        if self._backup is not None and self._tasks:
            task = asyncio.get_running_loop().create_task(
                self._run_backup(payload.encode("utf-8"))
            )
            self._pending_backups.add(task)
            task.add_done_callback(self._pending_backups.discard)

    async def _run_backup(self, blob: bytes) -> None:
        backup = self._backup
        if backup is None:
            return
        try:
            await backup.upload(blob, self._backup_filename)
        except Exception as exc:
            log.warning("backup_failed", error=str(exc), filename=self._backup_filename)

    async def wait_for_backups(self) -> None:
        """Wait for any in-flight backups to finish (they never raise)."""
        if self._pending_backups:
            await asyncio.gather(*self._pending_backups)
