"""Source annotator — loads each referenced source file once per report."""

from __future__ import annotations

import logging
from pathlib import Path

from .trace_types import TraceRecord, chunk_filename

logger = logging.getLogger(__name__)


def referenced_sources(traces: list[TraceRecord]) -> list[str]:
    """Every distinct chunk name used by start, stop or event locations, first-seen order."""
    sources: dict[str, None] = {}
    for trace in traces:
        locations = [trace.start, trace.stop] + [e.location for e in trace.events]
        for location in locations:
            if location.source is not None:
                sources.setdefault(location.source, None)
    return list(sources)


class SourceCache:
    """1-indexed source lines keyed by chunk name.

    A chunk whose file cannot be read has no entry; lookups for it return
    ``None``.
    """

    def __init__(self):
        self._lines: dict[str, list[str]] = {}
        self._attempted: set[str] = set()

    def load(self, sources: list[str]) -> None:
        for source in sources:
            if source in self._attempted:
                continue
            self._attempted.add(source)
            path = Path(chunk_filename(source))
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except (OSError, ValueError) as exc:
                logger.warning("Source unavailable for %r: %s", str(path), exc)
                continue
            # Only "\n" ends a line; form feeds and other separators stay in the text
            lines = text.split("\n")
            if lines and lines[-1] == "":
                lines.pop()
            self._lines[source] = lines

    def available(self, source: str | None) -> bool:
        return source in self._lines

    def line(self, source: str | None, number: int) -> str | None:
        lines = self._lines.get(source)
        if lines is None or not 1 <= number <= len(lines):
            return None
        return lines[number - 1]

    @property
    def loaded(self) -> int:
        return len(self._lines)

    @property
    def missing(self) -> int:
        return len(self._attempted) - len(self._lines)


def load_source_files(traces: list[TraceRecord]) -> SourceCache:
    cache = SourceCache()
    cache.load(referenced_sources(traces))
    return cache
