"""Boundary collaborators — operation decoding, abort messages and opcode names.

The collector consumes these through narrow contracts so that any
execution engine can feed it. ``DisDecoder`` is a concrete decoder over
CPython code objects.
"""

from __future__ import annotations

import dis
import logging
import re
import types
from abc import ABC, abstractmethod
from typing import Any, Iterable

from .trace_types import NO_SOURCE_LOCATION, SourceLocation
from . import constants

logger = logging.getLogger(__name__)


class OperationDecoder(ABC):
    """Turns a (function, pc) pair into display text and a source location."""

    @abstractmethod
    def line(self, function: Any, pc: int, prefix: str = "") -> str:
        """Display text for one operation, without a trailing newline."""
        ...

    @abstractmethod
    def location(self, function: Any, pc: int) -> SourceLocation: ...

    @abstractmethod
    def describe(self, function: Any) -> str:
        """Short descriptor for a function, used where no line applies."""
        ...

    @abstractmethod
    def is_paired(self, function: Any, pc: int) -> bool:
        """True if the operation at ``pc`` is always followed by a branch on the same line."""
        ...


class MessageResolver(ABC):
    """Maps an abort code plus auxiliary info to a readable message."""

    @abstractmethod
    def resolve(self, code: int | str, info: Any) -> str: ...


DEFAULT_ABORT_TEMPLATES: dict[int, str] = {
    0: "error thrown or hook called during recording",
    1: "trace too short",
    2: "trace too long",
    3: "trace too deep",
    4: "too many snapshots",
    5: "blacklisted",
    6: "retry recording",
    7: "NYI: bytecode {info}",
    8: "leaving loop in root trace",
    9: "inner loop in root trace",
    10: "loop unroll limit reached",
    11: "bad argument type",
    12: "JIT compilation disabled for function",
    13: "call unroll limit reached",
    14: "down-recursion, restarting",
    15: "NYI: unsupported variant of FastFunc {info}",
    16: "NYI: return to lower frame",
}


def _is_function_like(value: Any) -> bool:
    return isinstance(value, types.CodeType) or callable(value)


class TemplateMessageResolver(MessageResolver):
    """Formats abort messages from a code → template table.

    Templates may reference ``{info}``. Function-typed info is described
    through the decoder first. String codes are already messages.
    """

    def __init__(
        self,
        decoder: OperationDecoder,
        templates: dict[int, str] | None = None,
    ):
        self._decoder = decoder
        self._templates = DEFAULT_ABORT_TEMPLATES if templates is None else templates

    def resolve(self, code: int | str, info: Any) -> str:
        if isinstance(code, str):
            return code
        if _is_function_like(info):
            info = self._decoder.describe(info)
        template = self._templates.get(code)
        if template is None:
            logger.debug("No abort template for code %s", code)
            return f"unknown abort code {code} ({info})"
        return template.format(info=info)


class OpcodeNameTable:
    """Opcode names packed into one string at a fixed stride.

    The name of opcode ``n`` occupies ``[n * stride, (n + 1) * stride)``.
    """

    def __init__(self, packed: str, stride: int = constants.OPCODE_NAME_STRIDE):
        if stride <= 0:
            raise ValueError(f"Stride must be positive, got {stride}")
        self.packed = packed
        self.stride = stride

    @classmethod
    def from_names(cls, names: Iterable[str], stride: int | None = None) -> OpcodeNameTable:
        names = list(names)
        width = stride if stride is not None else max((len(n) for n in names), default=1)
        too_long = [n for n in names if len(n) > width]
        if too_long:
            raise ValueError(f"Opcode names wider than stride {width}: {too_long}")
        return cls("".join(n.ljust(width) for n in names), width)

    def name(self, opcode: int) -> str:
        start = opcode * self.stride
        if opcode < 0 or start >= len(self.packed):
            return str(opcode)
        return self.packed[start : start + self.stride].strip() or str(opcode)

    def rewrite(self, message: str) -> str:
        """Replace every ``bytecode N`` in ``message`` with ``bytecode <OPNAME>``."""
        return re.sub(
            constants.BYTECODE_REF_PATTERN,
            lambda m: constants.BYTECODE_REF_TEMPLATE.format(name=self.name(int(m.group(1)))),
            message,
        )


# ── CPython code objects ─────────────────────────────────────────

DEFAULT_PAIRED_OPNAMES: frozenset[str] = frozenset({"COMPARE_OP", "IS_OP", "CONTAINS_OP"})

_OPNAME_WIDTH = 20


def _code_of(function: Any) -> types.CodeType | None:
    if isinstance(function, types.CodeType):
        return function
    return getattr(function, "__code__", None)


class DisDecoder(OperationDecoder):
    """Decoder for CPython functions; ``pc`` is an index into ``dis.get_instructions``."""

    def __init__(self, paired_opnames: Iterable[str] = DEFAULT_PAIRED_OPNAMES):
        self._paired = frozenset(paired_opnames)
        self._instructions: dict[types.CodeType, list[dis.Instruction]] = {}
        self._last_lines: dict[types.CodeType, int] = {}

    def _decoded(self, code: types.CodeType) -> list[dis.Instruction]:
        if code not in self._instructions:
            self._instructions[code] = list(dis.get_instructions(code))
        return self._instructions[code]

    def _last_line(self, code: types.CodeType) -> int:
        if code not in self._last_lines:
            lines = [line for _, _, line in code.co_lines() if line is not None]
            self._last_lines[code] = max(lines, default=code.co_firstlineno)
        return self._last_lines[code]

    def _instruction(self, function: Any, pc: int) -> dis.Instruction | None:
        code = _code_of(function)
        if code is None or pc < 0:
            return None
        instructions = self._decoded(code)
        return instructions[pc] if pc < len(instructions) else None

    def line(self, function: Any, pc: int, prefix: str = "") -> str:
        inst = self._instruction(function, pc)
        if inst is None:
            return f"{pc:04d} {prefix} ???"
        return f"{pc:04d} {prefix} {inst.opname:<{_OPNAME_WIDTH}} {inst.argrepr}".rstrip()

    def location(self, function: Any, pc: int) -> SourceLocation:
        code = _code_of(function)
        if code is None:
            return NO_SOURCE_LOCATION
        inst = self._instruction(function, pc)
        lineno = inst.positions.lineno if inst is not None and inst.positions else None
        return SourceLocation(
            source=code.co_filename,
            line=lineno or code.co_firstlineno,
            line_defined=code.co_firstlineno,
            last_line_defined=self._last_line(code),
        )

    def describe(self, function: Any) -> str:
        code = _code_of(function)
        if code is not None:
            return f"{code.co_filename}:{code.co_firstlineno}"
        name = getattr(function, "__qualname__", None)
        return name if name else "(?)"

    def is_paired(self, function: Any, pc: int) -> bool:
        inst = self._instruction(function, pc)
        if inst is None or inst.opname not in self._paired:
            return False
        following = self._instruction(function, pc + 1)
        return following is not None and "JUMP" in following.opname
