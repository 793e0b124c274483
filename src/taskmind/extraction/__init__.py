"""Model-backed task extraction."""

from taskmind.extraction.engine import TaskExtractor, parse_response, to_task_record
from taskmind.extraction.provider import GeminiProvider, GenerativeModelProvider

__all__ = [
    "GeminiProvider",
    "GenerativeModelProvider",
    "TaskExtractor",
    "parse_response",
    "to_task_record",
]
