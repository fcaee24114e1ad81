"""Annotation session — owns the collector and runs the report pipeline once."""

from __future__ import annotations

import atexit
import logging
import sys
import time
from abc import ABC, abstractmethod
from typing import Callable, TextIO

from .aggregate import aggregate, classify_by_location, classify_by_reason
from .blocks import build_blocks
from .collector import EventCollector
from .decoder import (
    MessageResolver,
    OpcodeNameTable,
    OperationDecoder,
    TemplateMessageResolver,
)
from .dedup import remove_duplicate_traces
from .events import TraceEvent
from .report import ReportRenderer
from .report_types import ReportConfig, ReportStats
from .source_cache import load_source_files

logger = logging.getLogger(__name__)

EventHandler = Callable[[TraceEvent], None]


class Instrumentation(ABC):
    """The engine-side hook that delivers trace notifications."""

    @abstractmethod
    def attach(self, handler: EventHandler) -> None: ...

    @abstractmethod
    def detach(self) -> None: ...


class AnnotateSession:
    """Collects trace notifications while active and reports them exactly once.

    ``on()`` starts observation and registers the report as a shutdown
    hook. ``report()`` may also be called explicitly; repeat calls are
    no-ops until the session is switched on again.
    """

    def __init__(
        self,
        instrumentation: Instrumentation,
        decoder: OperationDecoder,
        opcode_names: OpcodeNameTable,
        resolver: MessageResolver | None = None,
        out: TextIO | None = None,
        config: ReportConfig = ReportConfig(),
    ):
        self._instrumentation = instrumentation
        self._out = out
        self._config = config
        self.collector = EventCollector(
            decoder, resolver or TemplateMessageResolver(decoder), opcode_names
        )
        self.active = False
        self.reported = False
        self._shutting_down = False
        self._hook_registered = False

    def on(self) -> None:
        self.active, self.reported = True, False
        self._instrumentation.attach(self.collector.handle)
        if not self._hook_registered:
            atexit.register(self._shutdown)
            self._hook_registered = True
        logger.info("Trace annotation on")

    start = on

    def off(self) -> None:
        self.active = False
        self._instrumentation.detach()
        logger.info("Trace annotation off")

    def _shutdown(self) -> None:
        self._shutting_down = True
        self.report()

    def report(self) -> ReportStats | None:
        """Generate the report once; returns its statistics, or None if already reported."""
        if self.reported:
            return None
        self.reported = True

        # Stop observing, otherwise the report itself gets traced
        if self.active:
            self._instrumentation.detach()
        try:
            stats = self._generate()
        finally:
            if self.active and not self._shutting_down:
                self._instrumentation.attach(self.collector.handle)
        return stats

    def _generate(self) -> ReportStats:
        pipeline_start = time.perf_counter()
        raw = self.collector.traces()
        stats = ReportStats(raw_traces=len(raw))

        t0 = time.perf_counter()
        traces = remove_duplicate_traces(raw)
        stats.dedup_time = time.perf_counter() - t0
        stats.unique_traces = len(traces)

        t0 = time.perf_counter()
        sources = load_source_files(traces)
        stats.source_time = time.perf_counter() - t0
        stats.sources_loaded = sources.loaded
        stats.sources_missing = sources.missing

        t0 = time.perf_counter()
        by_reason = aggregate(traces, classify_by_reason)
        by_location = aggregate(traces, classify_by_location)
        listings = [(trace, build_blocks(trace)) for trace in traces]
        stats.aggregate_time = time.perf_counter() - t0

        t0 = time.perf_counter()
        renderer = ReportRenderer(self._out or sys.stdout, self._config)
        renderer.write_report(by_reason, by_location, listings, sources)
        stats.render_time = time.perf_counter() - t0

        self.collector.reset()
        stats.total_time = time.perf_counter() - pipeline_start
        logger.info("\n%s", stats.report())
        return stats
