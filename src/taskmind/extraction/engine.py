"""Task extraction engine.

Sends a corpus to the generative model under a fixed output schema and
turns whatever comes back into well-formed TaskRecords. The schema is
requested, never trusted: every element is re-validated and repaired on
this side, and ids are always assigned here rather than by the model.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

from taskmind.constants import MAX_FALLBACK_TITLE_LENGTH, UNTITLED_TASK
from taskmind.errors import ExtractionFailed, MissingCredential
from taskmind.extraction.prompts import TASK_RESPONSE_SCHEMA, build_policy
from taskmind.extraction.provider import DEFAULT_MODEL, GeminiProvider, GenerativeModelProvider
from taskmind.logging import get_logger
from taskmind.models import (
    TaskRecord,
    coerce_confidence,
    coerce_priority,
    coerce_source_type,
)
from taskmind.utils import new_task_id, truncate

log = get_logger("taskmind.extraction.engine")

DEFAULT_EXTRACTION_TIMEOUT = 60.0

ProviderFactory = Callable[[str], GenerativeModelProvider]


def _default_factory(model: str) -> ProviderFactory:
    def factory(api_key: str) -> GenerativeModelProvider:
        return GeminiProvider(api_key, model=model)

    return factory


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code block, if the model added one."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.lower().startswith("json"):
            text = text[4:]
    return text.strip()


def parse_response(raw: str | None) -> list[dict[str, Any]]:
    """Parse raw model text into a list of candidate task dicts.

    Empty or unparsable text yields an empty list; no tasks is a valid answer.
    """
    if not raw or not raw.strip():
        return []

    try:
        data = json.loads(_strip_code_fence(raw))
    except (json.JSONDecodeError, IndexError) as exc:
        log.warning("extraction_response_unparsable", error=str(exc), length=len(raw))
        return []

    if isinstance(data, dict):
        # Some models wrap the array despite the schema
        data = data.get("tasks", [data] if "title" in data else [])
    if not isinstance(data, list):
        log.warning("extraction_response_not_a_list", kind=type(data).__name__)
        return []

    items = [item for item in data if isinstance(item, dict)]
    if len(items) != len(data):
        log.warning("extraction_elements_skipped", skipped=len(data) - len(items))
    return items


def _text(value: Any) -> str | None:
    """Return stripped text for str/number values, None for anything else or blank."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text or None
    return None


def to_task_record(raw: dict[str, Any]) -> TaskRecord:
    """Repair one model element into a TaskRecord with a fresh id."""
    source_context = _text(raw.get("sourceContext"))
    description = _text(raw.get("description"))
    title = _text(raw.get("title"))
    if title is None:
        fallback = source_context or description
        title = truncate(fallback, MAX_FALLBACK_TITLE_LENGTH) if fallback else UNTITLED_TASK

    return TaskRecord(
        id=new_task_id(),
        title=title,
        description=description,
        priority=coerce_priority(raw.get("priority")),
        source_type=coerce_source_type(raw.get("sourceType")),
        source_context=source_context or title,
        due_date=_text(raw.get("dueDate")),
        confidence_score=coerce_confidence(raw.get("confidenceScore")),
        is_completed=False,
    )


class TaskExtractor:
    """Extracts tasks from a corpus with a generative model."""

    def __init__(
        self,
        *,
        provider_factory: ProviderFactory | None = None,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_EXTRACTION_TIMEOUT,
    ) -> None:
        """Initialize the extractor.

        Args:
            provider_factory: Builds a provider from an API key. Defaults
                to Gemini with ``model``.
            model: Gemini model used by the default factory.
            timeout: Seconds to wait for the model before giving up.
        """
        self._provider_factory = provider_factory or _default_factory(model)
        self._timeout = timeout

    async def extract(
        self,
        corpus: str,
        credential: str | None,
        custom_instructions: str | None = None,
    ) -> list[TaskRecord]:
        """Extract task records from ``corpus``.

        Raises:
            MissingCredential: no API key was supplied; nothing is sent.
            ExtractionFailed: the provider call failed or timed out.
        """
        if not credential or not credential.strip():
            raise MissingCredential(
                "API key is missing. Please add your Gemini API key in settings."
            )

        policy = build_policy(custom_instructions)
        try:
            provider = self._provider_factory(credential.strip())
            raw = await asyncio.wait_for(
                provider.generate(corpus=corpus, policy=policy, schema=TASK_RESPONSE_SCHEMA),
                timeout=self._timeout,
            )
        except TimeoutError as exc:
            log.error("extraction_timeout", timeout=self._timeout)
            raise ExtractionFailed(f"Model call timed out after {self._timeout}s") from exc
        except Exception as exc:
            log.error("extraction_failed", error=str(exc), error_type=type(exc).__name__)
            raise ExtractionFailed(f"Model call failed: {exc}") from exc

        tasks = [to_task_record(item) for item in parse_response(raw)]
        log.info(
            "extraction_complete",
            tasks=len(tasks),
            corpus_length=len(corpus),
            custom_rules=bool(custom_instructions),
        )
        return tasks
