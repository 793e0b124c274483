"""Source fetchers: Gmail, Google Chat and manually pasted text."""

from taskmind.sources.base import SourceFetcher
from taskmind.sources.chat import ChatFetcher
from taskmind.sources.gmail import GmailFetcher
from taskmind.sources.manual import ManualFetcher

__all__ = [
    "ChatFetcher",
    "GmailFetcher",
    "ManualFetcher",
    "SourceFetcher",
]
