"""Shared fakes for the trace annotator unit tests.

``FakeFunction`` stands in for an engine function: a list of (opname, line)
operations indexed by pc. ``FakeDecoder`` decodes it the way an engine
decoder would.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from trace_annotator.decoder import OperationDecoder
from trace_annotator.trace_types import (
    AbortDetail,
    BytecodeEvent,
    NO_SOURCE_LOCATION,
    SourceLocation,
    TraceRecord,
    TraceStatus,
)

PAIRED_OPNAMES = frozenset({"ISLT", "ISGE", "ISEQV"})


@dataclass(frozen=True)
class FakeFunction:
    name: str
    source: str | None = "@demo.lua"
    line_defined: int = 1
    last_line_defined: int = 10
    ops: tuple[tuple[str, int], ...] = field(default_factory=tuple)


class FakeDecoder(OperationDecoder):
    def line(self, function, pc, prefix=""):
        opname = function.ops[pc][0] if 0 <= pc < len(function.ops) else "???"
        return f"{pc:04d} {prefix} {opname}"

    def location(self, function, pc):
        if function.source is None:
            return NO_SOURCE_LOCATION
        line = function.ops[pc][1] if 0 <= pc < len(function.ops) else function.line_defined
        return SourceLocation(
            source=function.source,
            line=line,
            line_defined=function.line_defined,
            last_line_defined=function.last_line_defined,
        )

    def describe(self, function):
        return function.name

    def is_paired(self, function, pc):
        return 0 <= pc < len(function.ops) and function.ops[pc][0] in PAIRED_OPNAMES


def loc(line: int, source: str | None = "@demo.lua", defined: int = 1, last: int = 10):
    return SourceLocation(
        source=source, line=line, line_defined=defined, last_line_defined=last
    )


def make_trace(
    trace_id: int = 1,
    events: list[tuple[str, SourceLocation]] | None = None,
    start: SourceLocation | None = None,
    status: TraceStatus = TraceStatus.COMPLETED,
    abort_message: str | None = None,
    abort_at: SourceLocation | None = None,
) -> TraceRecord:
    """Helper: build a finished TraceRecord from (text, location) pairs."""
    trace = TraceRecord(
        trace_id=trace_id,
        start=start or loc(1),
        events=[
            BytecodeEvent(pc=i, depth=0, text=text, location=where)
            for i, (text, where) in enumerate(events or [])
        ],
        status=status,
    )
    if abort_message is not None:
        trace.status = TraceStatus.ABORTED
        trace.abort = AbortDetail(
            location=abort_at or trace.stop, code=0, message=abort_message
        )
    return trace
