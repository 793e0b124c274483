"""Error taxonomy for TaskMind.

Fetch-level errors never leave the source fetchers. Credential and
extraction errors propagate to the caller as distinct types so that a
caller can tell "configure a key" apart from "try again".
"""


class TaskMindError(Exception):
    """Base class for all TaskMind errors."""


class SourceUnavailable(TaskMindError):
    """A source is unreachable, unauthorized for the scope, or empty."""


class NoContentAvailable(TaskMindError):
    """Every source came back empty, so there is nothing to scan."""


class MissingCredential(TaskMindError):
    """Extraction was requested without a model API key."""


class ExtractionFailed(TaskMindError):
    """The model call failed (transport, provider rejection or timeout)."""


class TaskNotFoundError(TaskMindError, KeyError):
    """No task with the requested id exists in the store."""

    def __init__(self, task_id: str) -> None:
        super().__init__(task_id)
        self.task_id = task_id

    def __str__(self) -> str:
        return f"Task not found: {self.task_id}"
