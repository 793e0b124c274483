"""Gmail inbox source.

Lists the newest inbox messages and pulls their headers and snippet,
rendering each as a short block the extraction model can attribute::

    Subject: Q3 Financial Report
    From: Finance Team <finance@company.com>
    Snippet: Please submit your expense reports by tomorrow.
    ---
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from taskmind.constants import GMAIL_LABEL, MAX_ITEMS_PER_SOURCE
from taskmind.errors import SourceUnavailable
from taskmind.logging import get_logger
from taskmind.models import SourceCredential, SourceType
from taskmind.sources.base import DEFAULT_FETCH_TIMEOUT, SourceFetcher
from taskmind.sources.google_api import GoogleApiClient, GoogleApiError

log = get_logger("taskmind.sources.gmail")

GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"


@dataclass
class EmailMessage:
    """The parts of a Gmail message that feed the corpus."""

    gmail_id: str
    thread_id: str = ""
    subject: str = ""
    from_email: str = ""
    snippet: str = ""
    received_at: datetime | None = None
    labels: list[str] = field(default_factory=list)

    def render(self) -> str:
        """Render the message as a corpus block."""
        subject = self.subject or "(No Subject)"
        sender = self.from_email or "Unknown"
        return f"Subject: {subject}\nFrom: {sender}\nSnippet: {self.snippet}\n---"


class GmailClient(GoogleApiClient):
    """Read-only Gmail API client."""

    async def list_messages(
        self,
        *,
        query: str = "",
        max_results: int = MAX_ITEMS_PER_SOURCE,
    ) -> list[dict[str, str]]:
        """List message stubs (``id``/``threadId``), newest first."""
        url = f"{GMAIL_API_BASE}/users/me/messages"
        params: dict[str, Any] = {"maxResults": max_results}
        if query:
            params["q"] = query

        data = await self._get(url, params)
        messages: list[dict[str, str]] = data.get("messages", [])
        log.debug("messages_listed", count=len(messages))
        return messages[:max_results]

    async def get_message(self, message_id: str) -> EmailMessage:
        """Fetch headers and snippet for one message."""
        url = f"{GMAIL_API_BASE}/users/me/messages/{message_id}"
        data = await self._get(
            url, {"format": "metadata", "metadataHeaders": ["Subject", "From"]}
        )
        return self._parse_message(data)

    def _parse_message(self, data: dict[str, Any]) -> EmailMessage:
        """Parse a Gmail API message response into an EmailMessage."""
        headers: dict[str, str] = {}
        for header in data.get("payload", {}).get("headers", []):
            name = header.get("name", "").lower()
            headers.setdefault(name, header.get("value", ""))

        received_at = None
        internal_date = data.get("internalDate")
        if internal_date:
            with contextlib.suppress(ValueError, TypeError, OSError):
                received_at = datetime.fromtimestamp(int(internal_date) / 1000)

        return EmailMessage(
            gmail_id=data.get("id", ""),
            thread_id=data.get("threadId", ""),
            subject=headers.get("subject", ""),
            from_email=headers.get("from", ""),
            snippet=data.get("snippet", ""),
            received_at=received_at,
            labels=data.get("labelIds", []),
        )


class GmailFetcher(SourceFetcher):
    """Fetches the newest inbox messages as one text blob."""

    label = GMAIL_LABEL
    source_type = SourceType.GMAIL

    def __init__(
        self,
        *,
        max_items: int = MAX_ITEMS_PER_SOURCE,
        query: str = "in:inbox",
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        super().__init__(timeout=timeout)
        self._max_items = max_items
        self._query = query

    def _client(self, credential: SourceCredential) -> GmailClient:
        return GmailClient(credential.access_token, timeout=self._timeout)

    async def _fetch(self, credential: SourceCredential | None) -> str | None:
        if credential is None or not credential.access_token:
            raise SourceUnavailable("no Google access token")

        client = self._client(credential)
        stubs = await client.list_messages(query=self._query, max_results=self._max_items)
        if not stubs:
            raise SourceUnavailable("inbox is empty")

        semaphore = asyncio.Semaphore(self._max_items)

        async def _detail(message_id: str) -> EmailMessage | None:
            async with semaphore:
                try:
                    return await client.get_message(message_id)
                except GoogleApiError as exc:
                    log.warning("message_fetch_failed", message_id=message_id, error=str(exc))
                    return None

        results = await asyncio.gather(*[_detail(stub["id"]) for stub in stubs if "id" in stub])
        messages = [msg for msg in results if msg is not None]
        if not messages:
            raise SourceUnavailable("no message details could be read")

        self.last_item_count = len(messages)
        log.info("gmail_fetched", count=len(messages), requested=len(stubs))
        return "\n".join(msg.render() for msg in messages)
