"""Event collector — turns begin/record/end/abort notifications into TraceRecords."""

from __future__ import annotations

import logging
from typing import Any

from .decoder import MessageResolver, OpcodeNameTable, OperationDecoder
from .events import AbortEvent, BeginEvent, EndEvent, RecordEvent
from .trace_types import AbortDetail, BytecodeEvent, TraceRecord, TraceStatus
from . import constants

logger = logging.getLogger(__name__)


class EventCollector:
    """Accumulates every attempt of every trace id, newest attempt last.

    Notifications for distinct ids may interleave arbitrarily; each one
    only touches the latest attempt for its own id.
    """

    def __init__(
        self,
        decoder: OperationDecoder,
        resolver: MessageResolver,
        opcode_names: OpcodeNameTable,
    ):
        self._decoder = decoder
        self._resolver = resolver
        self._opcode_names = opcode_names
        self._attempts: dict[int, list[TraceRecord]] = {}

    def handle(self, event: BeginEvent | RecordEvent | EndEvent | AbortEvent) -> None:
        if isinstance(event, BeginEvent):
            self.begin(event.trace_id, event.function, event.pc)
        elif isinstance(event, RecordEvent):
            self.record(event.trace_id, event.function, event.pc, event.depth)
        elif isinstance(event, EndEvent):
            self.end(event.trace_id)
        elif isinstance(event, AbortEvent):
            self.abort(event.trace_id, event.function, event.pc, event.code, event.info)
        else:
            raise TypeError(f"Unknown trace notification: {event!r}")

    def _current(self, trace_id: int, what: str) -> TraceRecord | None:
        attempts = self._attempts.get(trace_id)
        if not attempts:
            logger.warning("Ignoring %s for trace %d: no trace was started", what, trace_id)
            return None
        return attempts[-1]

    def begin(self, trace_id: int, function: Any, pc: int) -> None:
        record = TraceRecord(trace_id=trace_id, start=self._decoder.location(function, pc))
        self._attempts.setdefault(trace_id, []).append(record)
        logger.debug("Trace %d started at %s", trace_id, record.start)

    def record(self, trace_id: int, function: Any, pc: int, depth: int) -> None:
        trace = self._current(trace_id, "record")
        if trace is None:
            return
        prefix = constants.DEPTH_PREFIX * depth
        if pc >= 0:
            text = self._decoder.line(function, pc, prefix)
        else:
            pad = " " * max(constants.NATIVE_FRAME_PAD - len(prefix), 0)
            text = (
                f"{constants.NATIVE_FRAME_PC} {prefix} {constants.NATIVE_FRAME_OPNAME} {pad}"
            )
        if pc <= 0:
            text += constants.FUNCTION_DESC_SEPARATOR + self._decoder.describe(function)

        location = self._decoder.location(function, pc)
        trace.events.append(BytecodeEvent(pc=pc, depth=depth, text=text, location=location))

        # Keep a comparison adjacent to the branch that consumes it.
        if pc >= 0 and self._decoder.is_paired(function, pc):
            paired_text = self._decoder.line(function, pc + 1, prefix)
            trace.events.append(
                BytecodeEvent(pc=pc, depth=depth, text=paired_text, location=location)
            )

    def end(self, trace_id: int) -> None:
        trace = self._current(trace_id, "end")
        if trace is None:
            return
        trace.status = TraceStatus.COMPLETED
        logger.debug(
            "Trace %d completed with %d bytecodes, stopping at %s",
            trace_id,
            len(trace.events),
            trace.stop,
        )

    def abort(self, trace_id: int, function: Any, pc: int, code: int | str, info: Any) -> None:
        trace = self._current(trace_id, "abort")
        if trace is None:
            return
        message = self._opcode_names.rewrite(self._resolver.resolve(code, info))
        trace.status = TraceStatus.ABORTED
        trace.abort = AbortDetail(
            location=self._decoder.location(function, pc), code=code, message=message
        )
        logger.debug("Trace %d aborted at %s: %s", trace_id, trace.abort.location, message)

    def traces(self) -> list[TraceRecord]:
        """All attempts, grouped by id in first-seen order, attempts in order."""
        return [record for attempts in self._attempts.values() for record in attempts]

    def reset(self) -> None:
        self._attempts = {}

    def __len__(self) -> int:
        return sum(len(attempts) for attempts in self._attempts.values())
