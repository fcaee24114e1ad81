"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

CHUNK_FILE_PREFIX = "@"
NATIVE_SOURCE_NAME = "[native]"

SUCCESS_LABEL = "Success"
INCOMPLETE_LABEL = "Incomplete"
TOTAL_LABEL = "Total"

BYTECODE_REF_PATTERN = r"bytecode (\d+)"
BYTECODE_REF_TEMPLATE = "bytecode {name}"

OPCODE_NAME_STRIDE = 6

DEPTH_PREFIX = " ."
NATIVE_FRAME_PC = "0000"
NATIVE_FRAME_OPNAME = "FUNCC"
NATIVE_FRAME_PAD = 5
FUNCTION_DESC_SEPARATOR = "         ; "

CONTEXT_LINES = 5
SEPARATOR_WIDTH = 100
SUMMARY_COLUMN_WIDTH = 15

SUMMARY_HEADING = "TRACE SUMMARY"
TRACES_HEADING = "TRACES"
STATUS_COLUMN = "Trace Status"
SUMMARY_COLUMNS: tuple[str, ...] = ("Traces", "Bytecodes", "Lines")
