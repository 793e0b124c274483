"""Sync pipeline orchestrator.

Coordinates one run end to end:
1. Fetch every source concurrently (failures come back as None)
2. Aggregate the results into a labeled corpus
3. Extract tasks with the model
4. Merge them into the TaskStore

Only one run happens at a time; a request that arrives while another is
in flight is ignored and reported as ``busy``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from taskmind.aggregator import ContentAggregator
from taskmind.errors import NoContentAvailable
from taskmind.extraction.engine import TaskExtractor
from taskmind.logging import get_logger
from taskmind.models import (
    BehaviorPolicy,
    MergeMode,
    ProcessingStats,
    SourceCredential,
    SourceType,
    TaskRecord,
)
from taskmind.sources.base import SourceFetcher
from taskmind.sources.manual import ManualFetcher
from taskmind.store.task_store import TaskStore
from taskmind.utils import timed_operation

log = get_logger("taskmind.pipeline")


class SyncStatus(StrEnum):
    """Outcome of a pipeline run."""

    COMPLETED = "completed"
    NO_CONTENT = "no_content"  # Every source was empty; the model was not called
    BUSY = "busy"  # Another run was already in flight


@dataclass
class SyncResult:
    """What a run produced."""

    status: SyncStatus
    tasks: list[TaskRecord] = field(default_factory=list)
    stats: ProcessingStats = field(default_factory=ProcessingStats)

    @property
    def message(self) -> str:
        """A short user-facing summary."""
        if self.status is SyncStatus.BUSY:
            return "A sync is already running."
        if self.status is SyncStatus.NO_CONTENT:
            return "Nothing to scan: no recent messages found (or permission denied)."
        return f"Found {len(self.tasks)} tasks."


class SyncPipeline:
    """Runs fetch → aggregate → extract → merge against one TaskStore."""

    def __init__(
        self,
        store: TaskStore,
        extractor: TaskExtractor,
        *,
        fetchers: Sequence[SourceFetcher] = (),
        aggregator: ContentAggregator | None = None,
    ) -> None:
        self._store = store
        self._extractor = extractor
        self._fetchers = list(fetchers)
        self._aggregator = aggregator or ContentAggregator()
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def sync(
        self,
        credential: SourceCredential | None,
        policy: BehaviorPolicy,
        *,
        mode: MergeMode = MergeMode.REPLACE,
    ) -> SyncResult:
        """Scan the configured sources and merge what the model finds.

        Raises:
            MissingCredential: the policy has no model API key.
            ExtractionFailed: the model call failed; the store is untouched.
        """
        return await self._run(self._fetchers, credential, policy, mode)

    async def analyze_text(
        self,
        text: str,
        policy: BehaviorPolicy,
        *,
        mode: MergeMode = MergeMode.APPEND_DEDUP,
    ) -> SyncResult:
        """Run the same pipeline over pasted text."""
        return await self._run([ManualFetcher(text)], None, policy, mode)

    async def _run(
        self,
        fetchers: Sequence[SourceFetcher],
        credential: SourceCredential | None,
        policy: BehaviorPolicy,
        mode: MergeMode,
    ) -> SyncResult:
        if self._lock.locked():
            log.warning("sync_already_running")
            return SyncResult(status=SyncStatus.BUSY)

        async with self._lock:
            async with timed_operation("sources_fetched", log=log, sources=len(fetchers)):
                sections = await asyncio.gather(*[f.section(credential) for f in fetchers])

            stats = ProcessingStats(
                emails_scanned=_scanned(fetchers, SourceType.GMAIL),
                chats_scanned=_scanned(fetchers, SourceType.CHAT),
                sources_checked=[s.label for s in sections],
            )

            try:
                corpus = self._aggregator.aggregate(sections)
            except NoContentAvailable:
                return SyncResult(status=SyncStatus.NO_CONTENT, stats=stats)

            async with timed_operation("tasks_extracted", log=log, corpus_length=len(corpus)):
                tasks = await self._extractor.extract(
                    corpus, policy.api_key, policy.custom_instructions
                )

            kept = await self._store.apply(tasks, mode)
            stats.tasks_found = len(kept)
            log.info(
                "sync_complete", mode=str(mode), extracted=len(tasks), **stats.to_dict()
            )
            return SyncResult(status=SyncStatus.COMPLETED, tasks=kept, stats=stats)


def _scanned(fetchers: Sequence[SourceFetcher], source_type: SourceType) -> int:
    return sum(f.last_item_count for f in fetchers if f.source_type is source_type)
