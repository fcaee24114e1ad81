"""Result aggregation — bucket traces by outcome and total them up."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from .trace_types import TraceRecord, TraceStatus
from . import constants

Classifier = Callable[[TraceRecord], str]


@dataclass
class ResultBucket:
    label: str
    traces: int = 0
    bytecodes: int = 0
    lines: int = 0

    def add(self, trace: TraceRecord) -> None:
        self.traces += 1
        self.bytecodes += len(trace.events)
        self.lines += trace.distinct_line_count


@dataclass
class AggregateResult:
    """Buckets sorted by descending bytecode count, plus grand totals."""

    buckets: list[ResultBucket] = field(default_factory=list)
    total: ResultBucket = field(default_factory=lambda: ResultBucket(constants.TOTAL_LABEL))

    def get(self, label: str) -> ResultBucket | None:
        return next((b for b in self.buckets if b.label == label), None)

    def ordered(self, first_label: str = constants.SUCCESS_LABEL) -> list[ResultBucket]:
        """Buckets with ``first_label`` leading; a zero bucket stands in if it is absent."""
        first = self.get(first_label) or ResultBucket(first_label)
        return [first] + [b for b in self.buckets if b.label != first_label]


def percentage(part: int, total: int) -> float:
    """``100 * part / total``, or 0 when there is nothing to divide by."""
    if total == 0:
        return 0.0
    return 100.0 * part / total


def classify_by_reason(trace: TraceRecord) -> str:
    if trace.status == TraceStatus.COMPLETED:
        return constants.SUCCESS_LABEL
    if trace.abort is None:
        return constants.INCOMPLETE_LABEL
    return trace.abort.message


def classify_by_location(trace: TraceRecord) -> str:
    if trace.status == TraceStatus.COMPLETED:
        return constants.SUCCESS_LABEL
    if trace.abort is None:
        return constants.INCOMPLETE_LABEL
    return f"{trace.abort.location} ({trace.abort.message})"


def aggregate(traces: list[TraceRecord], classify: Classifier) -> AggregateResult:
    """Bucket ``traces`` by ``classify`` and compute per-bucket and total counts."""
    by_label: dict[str, ResultBucket] = {}
    for trace in traces:
        label = classify(trace)
        if label not in by_label:
            by_label[label] = ResultBucket(label)
        by_label[label].add(trace)

    # sorted() is stable: ties keep first-seen order
    buckets = sorted(by_label.values(), key=lambda b: b.bytecodes, reverse=True)
    total = ResultBucket(constants.TOTAL_LABEL)
    for bucket in buckets:
        total.traces += bucket.traces
        total.bytecodes += bucket.bytecodes
        total.lines += bucket.lines
    return AggregateResult(buckets=buckets, total=total)
