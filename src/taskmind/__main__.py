"""Allow ``python -m taskmind``."""

from taskmind.main import run

run()
