"""TaskMind: turns email, chat and pasted text into a reconciled task list."""

__version__ = "0.1.0"
