"""Google Chat source.

The Chat API is only available to Workspace (enhanced tier) accounts, so
for anyone else this source is simply unavailable rather than an error.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from taskmind.constants import CHAT_LABEL, MAX_ITEMS_PER_SOURCE
from taskmind.errors import SourceUnavailable
from taskmind.logging import get_logger
from taskmind.models import SourceCredential, SourceType
from taskmind.sources.base import DEFAULT_FETCH_TIMEOUT, SourceFetcher
from taskmind.sources.google_api import GoogleApiClient, GoogleApiError

log = get_logger("taskmind.sources.chat")

CHAT_API_BASE = "https://chat.googleapis.com/v1"


@dataclass
class ChatSpace:
    """A room, group chat or DM."""

    name: str  # "spaces/AAAA..."
    display_name: str = ""

    @property
    def title(self) -> str:
        return self.display_name or self.name


@dataclass
class ChatMessage:
    """One message posted in a space."""

    name: str
    sender: str = ""
    text: str = ""
    create_time: str = ""


class ChatClient(GoogleApiClient):
    """Read-only Google Chat API client."""

    async def list_spaces(self, *, page_size: int = MAX_ITEMS_PER_SOURCE) -> list[ChatSpace]:
        """List the spaces the caller is a member of."""
        data = await self._get(f"{CHAT_API_BASE}/spaces", {"pageSize": page_size})
        spaces = [
            ChatSpace(name=raw["name"], display_name=raw.get("displayName", ""))
            for raw in data.get("spaces", [])
            if raw.get("name")
        ]
        log.debug("spaces_listed", count=len(spaces))
        return spaces[:page_size]

    async def list_messages(
        self, space: ChatSpace, *, page_size: int = MAX_ITEMS_PER_SOURCE
    ) -> list[ChatMessage]:
        """List the newest messages in a space."""
        data = await self._get(
            f"{CHAT_API_BASE}/{space.name}/messages",
            {"pageSize": page_size, "orderBy": "createTime desc"},
        )
        return [self._parse_message(raw) for raw in data.get("messages", [])][:page_size]

    def _parse_message(self, data: dict[str, Any]) -> ChatMessage:
        sender = data.get("sender", {})
        return ChatMessage(
            name=data.get("name", ""),
            sender=sender.get("displayName") or sender.get("name") or "Unknown",
            text=data.get("text") or data.get("argumentText") or "",
            create_time=data.get("createTime", ""),
        )


class ChatFetcher(SourceFetcher):
    """Fetches recent messages across the user's Chat spaces."""

    label = CHAT_LABEL
    source_type = SourceType.CHAT

    def __init__(
        self,
        *,
        max_items: int = MAX_ITEMS_PER_SOURCE,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        super().__init__(timeout=timeout)
        self._max_items = max_items

    def _client(self, credential: SourceCredential) -> ChatClient:
        return ChatClient(credential.access_token, timeout=self._timeout)

    async def _fetch(self, credential: SourceCredential | None) -> str | None:
        if credential is None or not credential.access_token:
            raise SourceUnavailable("no Google access token")
        if not credential.enhanced_tier:
            raise SourceUnavailable("Chat API requires a Workspace account")

        client = self._client(credential)
        spaces = await client.list_spaces(page_size=self._max_items)
        if not spaces:
            raise SourceUnavailable("no chat spaces")

        # Split the item budget across spaces so the whole run stays bounded
        per_space = max(1, -(-self._max_items // len(spaces)))
        semaphore = asyncio.Semaphore(self._max_items)

        async def _messages(space: ChatSpace) -> tuple[ChatSpace, list[ChatMessage]]:
            async with semaphore:
                try:
                    return space, await client.list_messages(space, page_size=per_space)
                except GoogleApiError as exc:
                    log.warning("space_fetch_failed", space=space.name, error=str(exc))
                    return space, []

        results = await asyncio.gather(*[_messages(space) for space in spaces])

        blocks: list[str] = []
        remaining = self._max_items
        for space, messages in results:
            lines = [f"{msg.sender}: {msg.text}" for msg in messages if msg.text.strip()]
            lines = lines[:remaining]
            if not lines:
                continue
            remaining -= len(lines)
            blocks.append(f"[Google Chat - {space.title}]\n" + "\n".join(lines))
            if remaining <= 0:
                break

        if not blocks:
            raise SourceUnavailable("no recent chat messages")

        self.last_item_count = self._max_items - remaining
        log.info("chat_fetched", spaces=len(spaces), count=self.last_item_count)
        return "\n\n".join(blocks)
