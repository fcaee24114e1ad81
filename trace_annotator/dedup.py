"""Merge repeated compilation attempts that produced identical traces."""

from __future__ import annotations

import logging

from .trace_types import TraceRecord

logger = logging.getLogger(__name__)


def remove_duplicate_traces(traces: list[TraceRecord]) -> list[TraceRecord]:
    """Collapse identical attempts into one representative, counting ``attempts``.

    Records are first grouped by start/stop location. Two attempts that
    start and stop in the same place can still specialise differently, so
    within a group the bytecode text sequences are compared exactly. Output
    keeps first-seen order.
    """
    by_location: dict[tuple, list[TraceRecord]] = {}
    unique: list[TraceRecord] = []

    for trace in traces:
        representatives = by_location.setdefault(trace.location_key, [])
        texts = trace.texts
        match = next(
            (rep for rep in representatives if rep.texts == texts),
            None,
        )
        if match is not None:
            match.attempts += trace.attempts
            logger.debug(
                "Trace %d merged into trace %d (%d attempts)",
                trace.trace_id,
                match.trace_id,
                match.attempts,
            )
            continue
        representatives.append(trace)
        unique.append(trace)

    logger.info("Deduplicated %d traces into %d", len(traces), len(unique))
    return unique
