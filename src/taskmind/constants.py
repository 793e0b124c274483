"""Centralized constants for TaskMind."""

# Sources
MAX_ITEMS_PER_SOURCE = 10
GMAIL_LABEL = "GMAIL INBOX"
CHAT_LABEL = "GOOGLE CHAT"
MANUAL_LABEL = "MANUAL INPUT"
NO_DATA_PLACEHOLDER = "(no data)"

# Persistence keys
TASKS_KEY = "taskmind_tasks"
SETTINGS_KEY = "taskmind_settings"

# Backup
DEFAULT_BACKUP_FILENAME = "taskmind_backup.json"

# Extraction
MAX_FALLBACK_TITLE_LENGTH = 80
UNTITLED_TASK = "Untitled task"
