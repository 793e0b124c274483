"""Manual source: text pasted in by the user."""

from __future__ import annotations

from taskmind.constants import MANUAL_LABEL
from taskmind.errors import SourceUnavailable
from taskmind.models import SourceCredential, SourceType
from taskmind.sources.base import SourceFetcher


class ManualFetcher(SourceFetcher):
    """Serves a caller-supplied text blob as if it were a provider."""

    label = MANUAL_LABEL
    source_type = SourceType.MANUAL

    def __init__(self, text: str) -> None:
        super().__init__()
        self._text = text

    async def _fetch(self, credential: SourceCredential | None) -> str | None:
        text = self._text.strip()
        if not text:
            raise SourceUnavailable("no text supplied")
        self.last_item_count = 1
        return text
