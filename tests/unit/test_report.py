"""Tests for ReportRenderer — summary tables and annotated trace listings."""

import io

from trace_annotator.aggregate import aggregate, classify_by_location, classify_by_reason
from trace_annotator.blocks import build_blocks
from trace_annotator.report import ReportRenderer, operation_width, trace_header
from trace_annotator.report_types import ReportConfig
from trace_annotator.source_cache import load_source_files
from trace_annotator.trace_types import NO_SOURCE_LOCATION, TraceStatus
from tests.unit.conftest import loc, make_trace

SOURCE_LINES = [
    "local function sum(n)",
    "  local s = 0",
    "  for i = 1, n do",
    "    s = s + i",
    "  end",
    "  return s",
    "end",
]


def _source(tmp_path):
    path = tmp_path / "sum.lua"
    path.write_text("\n".join(SOURCE_LINES) + "\n", encoding="utf-8")
    return f"@{path}", str(path)


def _loop_trace(source, **kwargs):
    return make_trace(
        1,
        [
            ("0001  KSHORT", loc(3, source, defined=1, last=7)),
            ("0002  ADDVV", loc(4, source, defined=1, last=7)),
            ("0003  FORL", loc(3, source, defined=1, last=7)),
        ],
        start=loc(3, source, defined=1, last=7),
        **kwargs,
    )


def _render_trace(trace, config=ReportConfig()):
    out = io.StringIO()
    renderer = ReportRenderer(out, config)
    renderer.write_trace(
        trace, build_blocks(trace), load_source_files([trace]), operation_width([trace])
    )
    return out.getvalue().splitlines()


class TestSummary:
    def test_success_row_first_then_total(self):
        traces = [
            make_trace(1, [("a", loc(2))]),
            make_trace(2, [("a", loc(2)), ("b", loc(3))], abort_message="blacklisted"),
        ]
        out = io.StringIO()
        ReportRenderer(out).write_summary(aggregate(traces, classify_by_reason))

        rows = out.getvalue().splitlines()
        assert rows[0].split("\t")[0].strip() == "Trace Status"
        assert rows[2].startswith("Success")
        assert rows[3].startswith("blacklisted")
        assert rows[5].startswith("Total")
        assert rows[6].startswith("=")
        assert rows[-1] == ""

    def test_row_layout(self):
        out = io.StringIO()
        traces = [make_trace(1, [("a", loc(2)), ("b", loc(3))])]
        ReportRenderer(out).write_summary(aggregate(traces, classify_by_reason))

        success = out.getvalue().splitlines()[2]
        assert success == (
            "Success     \t       1 (100%)\t       2 (100%)\t       2 (100%)"
        )

    def test_percentages_truncate(self):
        traces = [
            make_trace(1, [("a", loc(2)), ("b", loc(3))]),
            make_trace(2, [("c", loc(4))], abort_message="blacklisted"),
        ]
        out = io.StringIO()
        ReportRenderer(out).write_summary(aggregate(traces, classify_by_reason))

        success = out.getvalue().splitlines()[2]
        assert success.split("\t")[2] == "       2 ( 66%)"

    def test_zero_totals_render_zero_percent(self):
        out = io.StringIO()
        traces = [make_trace(1), make_trace(2, abort_message="trace too short")]
        ReportRenderer(out).write_summary(aggregate(traces, classify_by_reason))

        rows = out.getvalue().splitlines()
        total = next(r for r in rows if r.startswith("Total"))
        assert total.split("\t")[2:] == ["       0 (  0%)", "       0 (  0%)"]
        assert "nan" not in out.getvalue()

    def test_label_column_fits_longest_label(self):
        long_reason = "NYI: unsupported variant of FastFunc string.format"
        traces = [make_trace(1, [("a", loc(2))], abort_message=long_reason)]
        out = io.StringIO()
        ReportRenderer(out).write_summary(aggregate(traces, classify_by_reason))

        rows = out.getvalue().splitlines()
        assert all(len(r.split("\t")[0]) == len(long_reason) for r in rows if r)

    def test_missing_success_renders_zero_row(self):
        out = io.StringIO()
        traces = [make_trace(1, [("a", loc(2))], abort_message="blacklisted")]
        ReportRenderer(out).write_summary(aggregate(traces, classify_by_location))

        success = out.getvalue().splitlines()[2]
        assert success.startswith("Success")
        assert "       0 (  0%)" in success


class TestTraceListing:
    def test_annotated_listing(self, tmp_path):
        source, filename = _source(tmp_path)
        pad = " " * len("0001  KSHORT")

        lines = _render_trace(_loop_trace(source))

        assert lines == [
            "",
            "Trace #1 (2 lines, 3 bytecodes, 1 attempts)",
            f"{pad} | {filename}:3-4",
            f"{pad} |    1 | local function sum(n)",
            f"{pad} |    2 |   local s = 0",
            "0001  KSHORT |    3 |   for i = 1, n do",
            "0003  FORL   |    . |",
            "0002  ADDVV  |    4 |     s = s + i",
            f"{pad} |    5 |   end",
            f"{pad} |    6 |   return s",
            f"{pad} |    7 | end",
            "-" * 100,
        ]

    def test_context_window_limits_leading_lines(self, tmp_path):
        source, _ = _source(tmp_path)
        lines = _render_trace(_loop_trace(source), ReportConfig(context_lines=1))

        assert not any("local function sum" in line for line in lines)
        assert not any(line.endswith("| end") for line in lines)

    def test_missing_source_still_renders(self, tmp_path):
        source = f"@{tmp_path / 'gone.lua'}"

        lines = _render_trace(_loop_trace(source))

        assert "0001  KSHORT |    3 |" in lines
        assert "0002  ADDVV  |    4 |" in lines
        assert lines[-1] == "-" * 100

    def test_aborted_trace_shows_reason(self, tmp_path):
        source, _ = _source(tmp_path)
        trace = _loop_trace(source, abort_message="loop unroll limit reached")

        lines = _render_trace(trace)

        assert lines[1].startswith("Aborted trace - loop unroll limit reached (")
        assert lines[-2] == "Aborted - loop unroll limit reached"

    def test_unreadable_chunk_name_still_renders(self):
        source = "@a\x00b.lua"
        trace = make_trace(1, [("0001  KSHORT", loc(3, source))], start=loc(3, source))

        lines = _render_trace(trace)

        assert "0001  KSHORT |    3 |" in lines
        assert lines[-1] == "-" * 100

    def test_empty_trace_has_header_only(self):
        lines = _render_trace(make_trace(7))
        assert lines == [
            "",
            "Trace #7 (0 lines, 0 bytecodes, 1 attempts)",
            "-" * 100,
        ]

    def test_native_block_listing(self):
        trace = make_trace(3, [("0000  FUNCC", NO_SOURCE_LOCATION)])
        lines = _render_trace(trace)
        assert lines[2] == "            | [native]"
        assert lines[3] == "0000  FUNCC |      |"

    def test_header_for_incomplete_trace(self):
        trace = make_trace(4, status=TraceStatus.RECORDING)
        assert trace_header(trace).startswith("Incomplete trace #4 (")


class TestWriteReport:
    def test_sections_in_order(self, tmp_path):
        source, _ = _source(tmp_path)
        traces = [
            _loop_trace(source),
            _loop_trace(source, abort_message="blacklisted"),
        ]
        out = io.StringIO()
        ReportRenderer(out).write_report(
            aggregate(traces, classify_by_reason),
            aggregate(traces, classify_by_location),
            [(t, build_blocks(t)) for t in traces],
            load_source_files(traces),
        )
        text = out.getvalue()

        assert text.startswith("\nTRACE SUMMARY\n=============\n")
        assert text.count("Trace Status") == 2
        assert text.index("TRACES\n======\n") > text.rindex("Total")
        assert text.index("Trace #1 (") < text.index("Aborted trace - blacklisted (")
        assert "sum.lua:3 (blacklisted)" in text
