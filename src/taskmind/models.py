"""Pydantic models for tasks, sources and the extraction policy.

Task records are persisted with camelCase keys so that a saved list
keeps the same shape the dashboard reads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic.alias_generators import to_camel

from taskmind.utils import new_task_id

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Priority(StrEnum):
    """How urgent a task is."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class SourceType(StrEnum):
    """Where a task was found."""

    GMAIL = "Gmail"
    CHAT = "Chat"
    MANUAL = "Manual"


class MergeMode(StrEnum):
    """How newly extracted tasks are reconciled with the stored list."""

    REPLACE = "replace"  # A full inbox re-scan is authoritative
    APPEND_DEDUP = "append-dedup"  # Prepend, dropping titles already present


# Spellings the model (or older saved lists) use for each source type.
_SOURCE_ALIASES: dict[str, SourceType] = {
    "gmail": SourceType.GMAIL,
    "email": SourceType.GMAIL,
    "e-mail": SourceType.GMAIL,
    "mail": SourceType.GMAIL,
    "inbox": SourceType.GMAIL,
    "chat": SourceType.CHAT,
    "google chat": SourceType.CHAT,
    "hangouts": SourceType.CHAT,
    "manual": SourceType.MANUAL,
    "manual input": SourceType.MANUAL,
}

_PRIORITY_ALIASES: dict[str, Priority] = {
    "high": Priority.HIGH,
    "medium": Priority.MEDIUM,
    "normal": Priority.MEDIUM,
    "low": Priority.LOW,
}


def coerce_priority(value: Any) -> Priority:
    """Map any model output onto a Priority, defaulting to Medium."""
    if isinstance(value, str):
        return _PRIORITY_ALIASES.get(value.strip().lower(), Priority.MEDIUM)
    return Priority.MEDIUM


def coerce_source_type(value: Any) -> SourceType:
    """Map any model output onto a SourceType, defaulting to Manual."""
    if isinstance(value, str):
        return _SOURCE_ALIASES.get(value.strip().lower(), SourceType.MANUAL)
    return SourceType.MANUAL


def coerce_confidence(value: Any) -> float:
    """Clamp a confidence value into 0-100; anything non-numeric becomes 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if score != score:  # NaN
        return 0.0
    return max(0.0, min(100.0, score))


# ---------------------------------------------------------------------------
# Task record
# ---------------------------------------------------------------------------


class TaskRecord(BaseModel):
    """A single actionable item surfaced to the user."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(default_factory=new_task_id, min_length=1)
    title: str = Field(min_length=1)
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    source_type: SourceType = SourceType.MANUAL
    source_context: str = ""
    due_date: str | None = None
    confidence_score: float = Field(default=0.0, ge=0.0, le=100.0)
    is_completed: bool = False

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, v: Any) -> Priority:
        if isinstance(v, Priority):
            return v
        return coerce_priority(v)

    @field_validator("source_type", mode="before")
    @classmethod
    def _coerce_source_type(cls, v: Any) -> SourceType:
        if isinstance(v, SourceType):
            return v
        return coerce_source_type(v)

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _coerce_confidence(cls, v: Any) -> float:
        return coerce_confidence(v)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskRecord:
        """Build a record from a camelCase (or snake_case) dict."""
        return cls.model_validate(data)


# ---------------------------------------------------------------------------
# Sources and policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceCredential:
    """Bearer credential handed over by the login flow."""

    access_token: str
    enhanced_tier: bool = False

    def __repr__(self) -> str:
        return f"SourceCredential(access_token='***', enhanced_tier={self.enhanced_tier})"


@dataclass(frozen=True)
class CorpusSection:
    """One labeled fragment of the corpus; ``body`` is None for an empty source."""

    label: str
    body: str | None


@dataclass(frozen=True)
class BehaviorPolicy:
    """What the extraction engine needs besides the corpus."""

    model_credential: SecretStr | None = None
    custom_instructions: str | None = None

    @property
    def api_key(self) -> str | None:
        """Return the plain credential, or None when unset or blank."""
        if self.model_credential is None:
            return None
        value = self.model_credential.get_secret_value().strip()
        return value or None


class AppSettings(BaseModel):
    """User settings persisted next to the task list."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    gemini_api_key: str = ""
    custom_instructions: str | None = None
    auto_save: bool = True
    google_drive_connected: bool = False

    def to_policy(self, fallback_api_key: SecretStr | None = None) -> BehaviorPolicy:
        """Build the extraction policy, using the env key when none is saved."""
        credential = SecretStr(self.gemini_api_key) if self.gemini_api_key.strip() else None
        return BehaviorPolicy(
            model_credential=credential or fallback_api_key,
            custom_instructions=self.custom_instructions or None,
        )


@dataclass
class ProcessingStats:
    """Counts reported after a sync."""

    emails_scanned: int = 0
    chats_scanned: int = 0
    tasks_found: int = 0
    sources_checked: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "emailsScanned": self.emails_scanned,
            "chatsScanned": self.chats_scanned,
            "tasksFound": self.tasks_found,
            "sourcesChecked": list(self.sources_checked),
        }
