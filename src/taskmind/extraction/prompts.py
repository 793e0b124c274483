"""Prompts and the output schema for task extraction."""

from __future__ import annotations

from typing import Any

SYSTEM_INSTRUCTION = """You are an expert productivity assistant.
Your goal is to analyze raw text logs from emails and chat messages to identify actionable tasks.

## Rules
1. Ignore casual conversation or informational updates that don't require action.
2. Infer priority from urgency language (e.g. "ASAP", "tomorrow", "critical").
3. Infer the source type from context clues ("Subject:" implies Gmail, names and
   "[Google Chat - ...]" headers imply Chat, anything else is Manual).
4. Always copy the exact sentence that triggered the task into sourceContext.
5. Set a confidence score from 0 to 100 based on how clear the task is.
6. A section marked "(no data)" was checked and is empty. Do not invent tasks for it.
7. If there are no clear tasks, return an empty array."""

CUSTOM_RULES_HEADER = "## USER CUSTOM RULES (IMPORTANT, these take precedence)"

EXTRACTION_PROMPT = """Analyze the following communication logs and extract a list of to-do items.

LOGS:
{corpus}"""

PRIORITY_VALUES = ["High", "Medium", "Low"]
SOURCE_TYPE_VALUES = ["Gmail", "Chat", "Manual"]

# OpenAPI-style schema understood by Gemini's response_schema.
TASK_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING", "description": "Short actionable title"},
            "description": {
                "type": "STRING",
                "description": "Detailed context or instructions",
                "nullable": True,
            },
            "priority": {"type": "STRING", "enum": PRIORITY_VALUES},
            "sourceType": {"type": "STRING", "enum": SOURCE_TYPE_VALUES},
            "sourceContext": {
                "type": "STRING",
                "description": "The original text snippet that triggered the task",
            },
            "dueDate": {
                "type": "STRING",
                "description": "ISO date or descriptive time (e.g. 'Next Friday') if inferred",
                "nullable": True,
            },
            "confidenceScore": {"type": "NUMBER", "description": "0 to 100"},
        },
        "required": ["title", "priority", "sourceType", "sourceContext", "confidenceScore"],
    },
}


def build_policy(custom_instructions: str | None = None) -> str:
    """Return the system instruction, with any user rules appended verbatim."""
    if custom_instructions and custom_instructions.strip():
        return f"{SYSTEM_INSTRUCTION}\n\n{CUSTOM_RULES_HEADER}\n{custom_instructions}"
    return SYSTEM_INSTRUCTION


def build_prompt(corpus: str) -> str:
    """Wrap the corpus in the user-turn prompt."""
    return EXTRACTION_PROMPT.format(corpus=corpus)
