"""Report pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class ReportConfig:
    """Groups report layout configuration."""

    context_lines: int = constants.CONTEXT_LINES
    separator_width: int = constants.SEPARATOR_WIDTH


@dataclass
class ReportStats:
    """Timing and size statistics for each report stage."""

    raw_traces: int = 0
    unique_traces: int = 0
    sources_loaded: int = 0
    sources_missing: int = 0

    # Stage timings (seconds)
    dedup_time: float = 0.0
    source_time: float = 0.0
    aggregate_time: float = 0.0
    render_time: float = 0.0
    total_time: float = 0.0

    def report(self) -> str:
        lines = [
            "═══ Report Statistics ═══",
            f"  Traces: {self.raw_traces} recorded, {self.unique_traces} unique",
            "",
            f"  {'Stage':<20} {'Time':>10}  {'Output':>30}",
            f"  {'─' * 20} {'─' * 10}  {'─' * 30}",
        ]

        stages = [
            ("Deduplicate", self.dedup_time, f"{self.unique_traces} traces"),
            (
                "Load sources",
                self.source_time,
                f"{self.sources_loaded} loaded, {self.sources_missing} missing",
            ),
            ("Aggregate", self.aggregate_time, ""),
            ("Render", self.render_time, ""),
        ]
        for name, t, output in stages:
            time_str = f"{t * 1000:>8.1f}ms"
            lines.append(f"  {name:<20} {time_str:>10}  {output:>30}")

        lines.append(f"  {'─' * 20} {'─' * 10}  {'─' * 30}")
        lines.append(f"  {'Total':<20} {self.total_time * 1000:>8.1f}ms")
        return "\n".join(lines)
