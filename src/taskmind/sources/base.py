"""Base class for source fetchers.

A fetcher turns one upstream provider into a single text blob. Whatever
goes wrong inside ``_fetch`` stays inside the fetcher: ``fetch`` returns
None for expected and unexpected failures alike, so one broken provider
never takes the rest of a sync down with it.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from taskmind.errors import SourceUnavailable
from taskmind.logging import get_logger
from taskmind.models import CorpusSection, SourceCredential, SourceType
from taskmind.sources.google_api import GoogleApiError

log = get_logger("taskmind.sources.base")

DEFAULT_FETCH_TIMEOUT = 30.0


class SourceFetcher(ABC):
    """Retrieves recent raw content from one provider."""

    #: Heading the content is filed under in the corpus.
    label: str = ""
    source_type: SourceType = SourceType.MANUAL

    def __init__(self, *, timeout: float = DEFAULT_FETCH_TIMEOUT) -> None:
        self._timeout = timeout
        self.last_item_count = 0

    @abstractmethod
    async def _fetch(self, credential: SourceCredential | None) -> str | None:
        """Provider-specific retrieval.

        Raise SourceUnavailable for expected "nothing here" outcomes.
        """
        raise NotImplementedError

    async def fetch(self, credential: SourceCredential | None) -> str | None:
        """Return the provider's content, or None if it is unavailable."""
        self.last_item_count = 0
        try:
            return await asyncio.wait_for(self._fetch(credential), timeout=self._timeout)
        except SourceUnavailable as exc:
            log.info("source_unavailable", source=self.label, reason=str(exc))
        except GoogleApiError as exc:
            if exc.is_permission_error:
                log.warning(
                    "source_permission_denied", source=self.label, status=exc.status_code
                )
            else:
                log.error("source_fetch_failed", source=self.label, error=str(exc))
        except TimeoutError:
            log.error("source_fetch_timeout", source=self.label, timeout=self._timeout)
        except Exception as exc:
            log.exception("source_fetch_unexpected_error", source=self.label, error=str(exc))
        self.last_item_count = 0
        return None

    async def section(self, credential: SourceCredential | None) -> CorpusSection:
        """Fetch and wrap the result as a labeled corpus section."""
        return CorpusSection(label=self.label, body=await self.fetch(credential))
