"""Tests for TaskStore and the Drive backup."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from taskmind.constants import DEFAULT_BACKUP_FILENAME, TASKS_KEY
from taskmind.errors import TaskNotFoundError
from taskmind.models import MergeMode, TaskRecord
from taskmind.sources.google_api import GoogleApiError
from taskmind.store.backup import DRIVE_UPLOAD_URL, DriveBackup
from taskmind.store.persistence import MemoryStore
from taskmind.store.task_store import TaskStore


def _task(task_id: str, title: str | None = None, **kwargs) -> TaskRecord:
    return TaskRecord(id=task_id, title=title or f"Task {task_id}", **kwargs)


def _saved(persistence: MemoryStore) -> list[dict]:
    return json.loads(persistence.load(TASKS_KEY))


# ===================================================================
# Loading
# ===================================================================


class TestLoad:
    """Tests for TaskStore.load."""

    def test_empty_store(self):
        store = TaskStore(MemoryStore())
        assert store.load() == []

    def test_loads_camel_case_records(self):
        persistence = MemoryStore(
            {TASKS_KEY: json.dumps([_task("a").to_dict(), _task("b").to_dict()])}
        )
        store = TaskStore(persistence)
        assert [t.id for t in store.load()] == ["a", "b"]

    def test_corrupt_json_starts_empty(self):
        store = TaskStore(MemoryStore({TASKS_KEY: "[{oops"}))
        assert store.load() == []

    def test_invalid_records_skipped(self):
        data = [_task("a").to_dict(), {"title": ""}, "junk", {"id": "c", "title": "ok"}]
        store = TaskStore(MemoryStore({TASKS_KEY: json.dumps(data)}))
        assert [t.id for t in store.load()] == ["a", "c"]

    def test_duplicate_ids_repaired(self):
        data = [_task("a", "one").to_dict(), _task("a", "two").to_dict()]
        store = TaskStore(MemoryStore({TASKS_KEY: json.dumps(data)}))
        ids = [t.id for t in store.load()]
        assert len(set(ids)) == 2
        assert ids[0] == "a"

    def test_non_list_payload_starts_empty(self):
        store = TaskStore(MemoryStore({TASKS_KEY: json.dumps({"tasks": []})}))
        assert store.load() == []


# ===================================================================
# Mutations
# ===================================================================


class TestApply:
    """Tests for TaskStore.apply."""

    @pytest.mark.asyncio
    async def test_replace_persists_full_list(self):
        persistence = MemoryStore()
        store = TaskStore(persistence)
        await store.apply([_task("a"), _task("b")], MergeMode.REPLACE)
        await store.apply([_task("c")], MergeMode.REPLACE)

        assert [t.id for t in store.tasks] == ["c"]
        assert [d["id"] for d in _saved(persistence)] == ["c"]

    @pytest.mark.asyncio
    async def test_append_dedup(self):
        store = TaskStore(MemoryStore())
        await store.apply([_task("a", "Review draft")], MergeMode.REPLACE)
        await store.apply(
            [_task("b", "Review draft"), _task("c", "Book venue")], MergeMode.APPEND_DEDUP
        )
        assert [t.id for t in store.tasks] == ["c", "a"]

    @pytest.mark.asyncio
    async def test_returns_only_kept_records(self):
        store = TaskStore(MemoryStore())
        await store.apply([_task("a", "Review draft")], MergeMode.REPLACE)

        kept = await store.apply(
            [_task("a", "Book venue"), _task("b", "Review draft")], MergeMode.APPEND_DEDUP
        )

        assert [t.title for t in kept] == ["Book venue"]
        assert kept[0].id != "a"
        assert kept == store.tasks[:1]

    @pytest.mark.asyncio
    async def test_replace_returns_whole_list(self):
        store = TaskStore(MemoryStore())
        kept = await store.apply([_task("a"), _task("b")], MergeMode.REPLACE)
        assert kept == store.tasks

    @pytest.mark.asyncio
    async def test_replace_with_nothing_warns(self):
        store = TaskStore(MemoryStore())
        await store.apply([_task("a")], MergeMode.REPLACE)

        with patch("taskmind.store.task_store.log") as mock_log:
            await store.apply([], MergeMode.REPLACE)

        mock_log.warning.assert_called_once_with("replace_emptied_task_list", dropped=1)
        assert store.tasks == []

    @pytest.mark.asyncio
    async def test_ids_stay_unique_over_many_merges(self):
        store = TaskStore(MemoryStore())
        for round_no in range(5):
            incoming = [TaskRecord(title=f"r{round_no}-{i}") for i in range(3)]
            await store.apply(incoming, MergeMode.APPEND_DEDUP)
        ids = [t.id for t in store.tasks]
        assert len(ids) == 15
        assert len(set(ids)) == 15

    @pytest.mark.asyncio
    async def test_tasks_property_is_a_snapshot(self):
        store = TaskStore(MemoryStore())
        await store.apply([_task("a")], MergeMode.REPLACE)
        snapshot = store.tasks
        snapshot.clear()
        assert len(store.tasks) == 1


class TestToggleAndClear:
    """Tests for TaskStore.toggle and TaskStore.clear."""

    @pytest.mark.asyncio
    async def test_toggle_persists(self):
        persistence = MemoryStore()
        store = TaskStore(persistence)
        await store.apply([_task("a"), _task("b")], MergeMode.REPLACE)

        task = await store.toggle("a")

        assert task.is_completed is True
        assert _saved(persistence)[0]["isCompleted"] is True
        assert _saved(persistence)[1]["isCompleted"] is False

    @pytest.mark.asyncio
    async def test_toggle_twice_restores(self):
        store = TaskStore(MemoryStore())
        await store.apply([_task("a"), _task("b", is_completed=True)], MergeMode.REPLACE)
        before = store.tasks

        await store.toggle("b")
        await store.toggle("b")

        assert store.tasks == before

    @pytest.mark.asyncio
    async def test_toggle_unknown_raises_and_keeps_list(self):
        persistence = MemoryStore()
        store = TaskStore(persistence)
        await store.apply([_task("a")], MergeMode.REPLACE)

        with pytest.raises(TaskNotFoundError):
            await store.toggle("zzz")
        assert [t.id for t in store.tasks] == ["a"]

    @pytest.mark.asyncio
    async def test_clear(self):
        persistence = MemoryStore()
        store = TaskStore(persistence)
        await store.apply([_task("a")], MergeMode.REPLACE)

        await store.clear()

        assert store.tasks == []
        assert _saved(persistence) == []

    def test_get_unknown_raises(self):
        with pytest.raises(TaskNotFoundError):
            TaskStore(MemoryStore()).get("nope")


# ===================================================================
# Listeners
# ===================================================================


class TestListeners:
    """Tests for change listeners."""

    @pytest.mark.asyncio
    async def test_listener_receives_new_list(self):
        store = TaskStore(MemoryStore())
        seen: list[list[str]] = []
        store.subscribe(lambda tasks: seen.append([t.id for t in tasks]))

        await store.apply([_task("a")], MergeMode.REPLACE)
        await store.toggle("a")
        await store.clear()

        assert seen == [["a"], ["a"], []]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        store = TaskStore(MemoryStore())
        listener = MagicMock()
        unsubscribe = store.subscribe(listener)
        unsubscribe()
        unsubscribe()

        await store.apply([_task("a")], MergeMode.REPLACE)
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_save(self):
        persistence = MemoryStore()
        store = TaskStore(persistence)
        store.subscribe(MagicMock(side_effect=RuntimeError("ui crashed")))
        after = MagicMock()
        store.subscribe(after)

        await store.apply([_task("a")], MergeMode.REPLACE)

        assert [d["id"] for d in _saved(persistence)] == ["a"]
        after.assert_called_once()


# ===================================================================
# Backup
# ===================================================================


class TestBackup:
    """Tests for best-effort cloud backup."""

    @pytest.mark.asyncio
    async def test_backup_uploaded_after_save(self):
        backup = AsyncMock()
        persistence = MemoryStore()
        store = TaskStore(persistence, backup=backup)

        await store.apply([_task("a")], MergeMode.REPLACE)
        await store.wait_for_backups()

        backup.upload.assert_awaited_once()
        blob, filename = backup.upload.call_args[0]
        assert filename == DEFAULT_BACKUP_FILENAME
        assert blob.decode("utf-8") == persistence.load(TASKS_KEY)

    @pytest.mark.asyncio
    async def test_backup_failure_swallowed(self):
        backup = AsyncMock()
        backup.upload.side_effect = GoogleApiError("Drive upload failed", status_code=500)
        persistence = MemoryStore()
        store = TaskStore(persistence, backup=backup)

        await store.apply([_task("a")], MergeMode.REPLACE)
        await store.wait_for_backups()

        assert [d["id"] for d in _saved(persistence)] == ["a"]

    @pytest.mark.asyncio
    async def test_save_does_not_wait_for_backup(self):
        release = asyncio.Event()

        async def slow_upload(blob: bytes, filename: str) -> None:
            await release.wait()

        backup = AsyncMock()
        backup.upload.side_effect = slow_upload
        persistence = MemoryStore()
        store = TaskStore(persistence, backup=backup)

        await store.apply([_task("a")], MergeMode.REPLACE)
        assert persistence.load(TASKS_KEY) is not None

        release.set()
        await store.wait_for_backups()

    @pytest.mark.asyncio
    async def test_empty_list_not_backed_up(self):
        backup = AsyncMock()
        store = TaskStore(MemoryStore(), backup=backup)
        await store.clear()
        await store.wait_for_backups()
        backup.upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_set_backup_detaches(self):
        backup = AsyncMock()
        store = TaskStore(MemoryStore(), backup=backup)
        store.set_backup(None)
        await store.apply([_task("a")], MergeMode.REPLACE)
        await store.wait_for_backups()
        backup.upload.assert_not_awaited()


class TestDriveBackup:
    """Tests for DriveBackup.upload."""

    @pytest.mark.asyncio
    async def test_upload_posts_metadata_and_file(self):
        drive = DriveBackup("tok")
        with patch.object(drive, "_post_multipart", AsyncMock(return_value={"id": "f1"})):
            await drive.upload(b"[]", "taskmind_backup.json")
            url, parts = drive._post_multipart.call_args[0]
            params = drive._post_multipart.call_args[1]["params"]

        assert url == DRIVE_UPLOAD_URL
        assert params == {"uploadType": "multipart"}
        metadata = json.loads(parts["metadata"][1])
        assert metadata == {"name": "taskmind_backup.json", "mimeType": "application/json"}
        assert parts["file"] == ("taskmind_backup.json", b"[]", "application/json")

    @pytest.mark.asyncio
    async def test_upload_errors_propagate(self):
        drive = DriveBackup("tok")
        error = GoogleApiError("nope", status_code=403)
        with patch.object(drive, "_post_multipart", AsyncMock(side_effect=error)):
            with pytest.raises(GoogleApiError):
                await drive.upload(b"[]", "x.json")


class FailingStore(MemoryStore):
    """Loads normally but refuses every save."""

    def save(self, key: str, value: str) -> None:
        raise OSError("disk full")


class TestSaveFailure:
    """A failed save leaves the in-memory list as it was."""

    def _loaded(self) -> TaskStore:
        persistence = FailingStore({TASKS_KEY: json.dumps([_task("a").to_dict()])})
        store = TaskStore(persistence)
        store.load()
        return store

    @pytest.mark.asyncio
    async def test_clear(self):
        store = self._loaded()
        with pytest.raises(OSError):
            await store.clear()
        assert [t.id for t in store.tasks] == ["a"]

    @pytest.mark.asyncio
    async def test_apply(self):
        store = self._loaded()
        with pytest.raises(OSError):
            await store.apply([_task("b")], MergeMode.REPLACE)
        assert [t.id for t in store.tasks] == ["a"]

    @pytest.mark.asyncio
    async def test_toggle(self):
        store = self._loaded()
        with pytest.raises(OSError):
            await store.toggle("a")
        assert store.get("a").is_completed is False

    @pytest.mark.asyncio
    async def test_listeners_and_backup_skipped(self):
        store = self._loaded()
        listener = MagicMock()
        store.subscribe(listener)
        backup = AsyncMock()
        store.set_backup(backup)

        with pytest.raises(OSError):
            await store.apply([_task("b")], MergeMode.APPEND_DEDUP)
        await store.wait_for_backups()

        listener.assert_not_called()
        backup.upload.assert_not_awaited()
