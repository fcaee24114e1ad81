"""Report renderer — summary tables and annotated per-trace listings."""

from __future__ import annotations

from typing import TextIO

from .aggregate import AggregateResult, ResultBucket, percentage
from .blocks import Block
from .report_types import ReportConfig
from .source_cache import SourceCache
from .trace_types import TraceRecord, TraceStatus
from . import constants


def _heading(title: str) -> str:
    return f"{title}\n{'=' * len(title)}\n"


def operation_width(traces: list[TraceRecord]) -> int:
    """Width of the operation column: the longest event text across all traces."""
    return max((len(e.text) for t in traces for e in t.events), default=1)


def trace_header(trace: TraceRecord) -> str:
    if trace.status == TraceStatus.COMPLETED:
        title = f"Trace #{trace.trace_id}"
    elif trace.abort is not None:
        title = f"Aborted trace - {trace.abort.message}"
    else:
        title = f"{constants.INCOMPLETE_LABEL} trace #{trace.trace_id}"
    return (
        f"{title} ({trace.distinct_line_count} lines, {len(trace.events)} bytecodes,"
        f" {trace.attempts} attempts)"
    )


class ReportRenderer:
    """Writes the report to an append-only text sink."""

    def __init__(self, out: TextIO, config: ReportConfig = ReportConfig()):
        self._out = out
        self._config = config

    def _write(self, text: str) -> None:
        self._out.write(text)

    # ── Summary tables ─────────────────────────────────────────────

    def write_summary(self, result: AggregateResult) -> None:
        rows = result.ordered(constants.SUCCESS_LABEL)
        width = max(
            [len(constants.STATUS_COLUMN), len(constants.TOTAL_LABEL)]
            + [len(r.label) for r in rows]
        )
        col = constants.SUMMARY_COLUMN_WIDTH

        def header(*cells: str) -> str:
            first, *rest = cells
            return "\t".join([f"{first:<{width}}"] + [f"{c:>{col}}" for c in rest]) + "\n"

        def row(bucket: ResultBucket) -> str:
            total = result.total
            cells = [
                (bucket.traces, total.traces),
                (bucket.bytecodes, total.bytecodes),
                (bucket.lines, total.lines),
            ]
            numbers = [f"{n:>8d} ({int(percentage(n, t)):>3d}%)" for n, t in cells]
            return "\t".join([f"{bucket.label:<{width}}"] + numbers) + "\n"

        self._write(header(constants.STATUS_COLUMN, *constants.SUMMARY_COLUMNS))
        self._write(
            header(
                "-" * len(constants.STATUS_COLUMN),
                *("-" * len(c) for c in constants.SUMMARY_COLUMNS),
            )
        )
        for bucket in rows:
            self._write(row(bucket))
        self._write(header("-" * width, *(["-" * col] * len(constants.SUMMARY_COLUMNS))))
        self._write(row(result.total))
        self._write(header("=" * width, *(["=" * col] * len(constants.SUMMARY_COLUMNS))))
        self._write("\n")

    # ── Trace listings ─────────────────────────────────────────────

    def _source_row(self, op_text: str, number: int, source_text: str | None) -> str:
        return f"{op_text} | {number:4d} | {source_text or ''}".rstrip() + "\n"

    def _context(self, pad: str, block: Block, sources: SourceCache, first: int, last: int) -> None:
        for number in range(max(first, 1), last + 1):
            self._write(self._source_row(pad, number, sources.line(block.source, number)))

    def write_block(
        self,
        block: Block,
        sources: SourceCache,
        width: int,
        is_first: bool,
        is_last: bool,
    ) -> None:
        pad = " " * width
        window = self._config.context_lines
        if not block.has_source:
            self._write(f"{pad} | {block.filename}\n")
            for line in block.lines:
                for text in line.texts:
                    self._write(f"{text:<{width}} |      |\n")
            return

        self._write(f"{pad} | {block.filename}:{block.first_line}-{block.last_line}\n")
        if is_first and block.line_defined >= block.first_line - window:
            self._context(pad, block, sources, block.line_defined, block.first_line - 1)
        for line in block.lines:
            for i, text in enumerate(line.texts):
                if i == 0:
                    source_text = sources.line(block.source, line.number)
                    self._write(self._source_row(f"{text:<{width}}", line.number, source_text))
                else:
                    self._write(f"{text:<{width}} |    . |\n")
        if is_last and block.last_line_defined <= block.last_line + window:
            self._context(pad, block, sources, block.last_line + 1, block.last_line_defined)

    def write_trace(
        self,
        trace: TraceRecord,
        blocks: list[Block],
        sources: SourceCache,
        width: int,
    ) -> None:
        self._write("\n")
        self._write(trace_header(trace) + "\n")
        for j, block in enumerate(blocks):
            self.write_block(block, sources, width, j == 0, j == len(blocks) - 1)
        if trace.abort is not None:
            self._write(f"Aborted - {trace.abort.message}\n")
        self._write("-" * self._config.separator_width + "\n")

    def write_report(
        self,
        by_reason: AggregateResult,
        by_location: AggregateResult,
        listings: list[tuple[TraceRecord, list[Block]]],
        sources: SourceCache,
    ) -> None:
        width = operation_width([trace for trace, _ in listings])
        self._write("\n" + _heading(constants.SUMMARY_HEADING))
        self.write_summary(by_reason)
        self.write_summary(by_location)
        self._write(_heading(constants.TRACES_HEADING))
        for trace, blocks in listings:
            self.write_trace(trace, blocks, sources, width)
