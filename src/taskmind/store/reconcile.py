"""Pure merge rules for task lists.

Two modes, matching the two ways tasks arrive:

- ``replace``: a full inbox re-scan is authoritative; the result is the
  incoming list.
- ``append-dedup``: incoming tasks are prepended, except those whose
  title exactly matches a title already in the list. Title equality is a
  coarse duplicate guard: two real tasks that share a title collapse
  into the one already stored.

Both modes also guarantee that no two records in the result share an id.
"""

from __future__ import annotations

from collections.abc import Sequence

from taskmind.errors import TaskNotFoundError
from taskmind.logging import get_logger
from taskmind.models import MergeMode, TaskRecord
from taskmind.utils import new_task_id

log = get_logger("taskmind.store.reconcile")


def ensure_unique_ids(
    incoming: Sequence[TaskRecord], taken: set[str] | None = None
) -> list[TaskRecord]:
    """Re-id any incoming record whose id is already taken."""
    taken = set() if taken is None else taken
    result: list[TaskRecord] = []
    for task in incoming:
        if task.id in taken:
            fresh = new_task_id()
            log.warning("task_id_collision", old_id=task.id, new_id=fresh)
            task = task.model_copy(update={"id": fresh})
        taken.add(task.id)
        result.append(task)
    return result


def merge(
    existing: Sequence[TaskRecord],
    incoming: Sequence[TaskRecord],
    mode: MergeMode | str,
) -> list[TaskRecord]:
    """Reconcile ``incoming`` with ``existing`` and return the new list."""
    mode = MergeMode(mode)

    if mode is MergeMode.REPLACE:
        return ensure_unique_ids(incoming)

    known_titles = {task.title for task in existing}
    fresh = [task for task in incoming if task.title not in known_titles]
    dropped = len(incoming) - len(fresh)
    if dropped:
        log.info("duplicate_titles_dropped", count=dropped)

    return ensure_unique_ids(fresh, {task.id for task in existing}) + list(existing)


def toggle(tasks: Sequence[TaskRecord], task_id: str) -> list[TaskRecord]:
    """Flip ``is_completed`` on the task with ``task_id``.

    Raises:
        TaskNotFoundError: if no task has that id.
    """
    result: list[TaskRecord] = []
    found = False
    for task in tasks:
        if task.id == task_id:
            task = task.model_copy(update={"is_completed": not task.is_completed})
            found = True
        result.append(task)
    if not found:
        raise TaskNotFoundError(task_id)
    return result
