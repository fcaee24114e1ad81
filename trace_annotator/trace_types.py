"""Trace data types — one record per compilation attempt."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property

from pydantic import BaseModel, ConfigDict

from . import constants


def chunk_filename(source: str | None) -> str:
    """Chunk name with the file prefix stripped."""
    if source is None:
        return constants.NATIVE_SOURCE_NAME
    if source.startswith(constants.CHUNK_FILE_PREFIX):
        return source[len(constants.CHUNK_FILE_PREFIX) :]
    return source


class SourceLocation(BaseModel):
    """Where an operation lives: chunk name, current line and owning function span.

    ``source`` is ``None`` for frames without source (native functions).
    """

    model_config = ConfigDict(frozen=True)

    source: str | None = None
    line: int = 0
    line_defined: int = 0
    last_line_defined: int = 0

    @property
    def has_source(self) -> bool:
        return self.source is not None

    @property
    def filename(self) -> str:
        return chunk_filename(self.source)

    @property
    def function_key(self) -> tuple[str | None, int, int]:
        return (self.source, self.line_defined, self.last_line_defined)

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}"


NO_SOURCE_LOCATION = SourceLocation()


class TraceStatus(str, Enum):
    RECORDING = "recording"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class BytecodeEvent:
    """A single decoded operation observed while recording a trace.

    A negative ``pc`` marks a synthetic native call frame boundary.
    """

    pc: int
    depth: int
    text: str
    location: SourceLocation = NO_SOURCE_LOCATION


@dataclass(frozen=True)
class AbortDetail:
    location: SourceLocation
    code: int | str
    message: str


@dataclass
class TraceRecord:
    """One compilation attempt.

    Ids are reused across attempts, so ``trace_id`` alone does not identify
    a record. ``attempts`` counts raw records merged into this one by
    deduplication.
    """

    trace_id: int
    start: SourceLocation
    events: list[BytecodeEvent] = field(default_factory=list)
    status: TraceStatus = TraceStatus.RECORDING
    abort: AbortDetail | None = None
    attempts: int = 1

    @property
    def completed(self) -> bool:
        return self.status == TraceStatus.COMPLETED

    @property
    def aborted(self) -> bool:
        return self.status == TraceStatus.ABORTED

    @property
    def stop(self) -> SourceLocation:
        if self.abort is not None:
            return self.abort.location
        if self.events:
            return self.events[-1].location
        return self.start

    @property
    def location_key(self) -> tuple[str | None, int, str | None, int]:
        stop = self.stop
        return (self.start.source, self.start.line, stop.source, stop.line)

    @property
    def texts(self) -> list[str]:
        return [e.text for e in self.events]

    @cached_property
    def distinct_line_count(self) -> int:
        """Number of distinct (source, line) pairs among sourced events."""
        return len(
            {(e.location.source, e.location.line) for e in self.events if e.location.has_source}
        )
