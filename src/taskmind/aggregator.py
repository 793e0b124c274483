"""Combines source results into one labeled corpus.

An empty source is still written out, with a ``(no data)`` placeholder,
so the model can tell a checked-but-empty source from one that was never
looked at.
"""

from __future__ import annotations

from collections.abc import Iterable

from taskmind.constants import NO_DATA_PLACEHOLDER
from taskmind.errors import NoContentAvailable
from taskmind.logging import get_logger
from taskmind.models import CorpusSection

log = get_logger("taskmind.aggregator")


class ContentAggregator:
    """Renders corpus sections in order under their labels."""

    def __init__(self, *, placeholder: str = NO_DATA_PLACEHOLDER) -> None:
        self._placeholder = placeholder

    def render_section(self, section: CorpusSection) -> str:
        body = section.body.strip() if section.body else ""
        return f"=== {section.label} ===\n{body or self._placeholder}"

    def aggregate(self, sections: Iterable[CorpusSection]) -> str:
        """Build the corpus.

        Raises:
            NoContentAvailable: if no section has a body.
        """
        sections = list(sections)
        present = [s.label for s in sections if s.body and s.body.strip()]
        if not present:
            log.info("no_content_available", checked=[s.label for s in sections])
            raise NoContentAvailable("No content available from any source")

        corpus = "\n\n".join(self.render_section(s) for s in sections)
        log.debug(
            "corpus_aggregated",
            sections=len(sections),
            present=present,
            length=len(corpus),
        )
        return corpus
