"""Block builder — split a trace into function-scoped, line-grouped blocks."""

from __future__ import annotations

from dataclasses import dataclass, field

from .trace_types import BytecodeEvent, SourceLocation, TraceRecord, chunk_filename


@dataclass
class Line:
    number: int
    texts: list[str] = field(default_factory=list)


@dataclass
class Block:
    """A contiguous run of events within one function.

    ``lines`` is sorted by line number once the block is closed; texts
    within a line stay in execution order. ``source`` is ``None`` for a
    leading run of native frames.
    """

    source: str | None
    line_defined: int = 0
    last_line_defined: int = 0
    first_line: int | None = None
    last_line: int | None = None
    events: list[BytecodeEvent] = field(default_factory=list)
    lines: list[Line] = field(default_factory=list)
    _line_map: dict[int, Line] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def for_location(cls, location: SourceLocation) -> Block:
        return cls(
            source=location.source,
            line_defined=location.line_defined,
            last_line_defined=location.last_line_defined,
        )

    @property
    def filename(self) -> str:
        return chunk_filename(self.source)

    @property
    def has_source(self) -> bool:
        return self.source is not None

    def _line(self, number: int) -> Line:
        if number not in self._line_map:
            line = Line(number)
            self._line_map[number] = line
            self.lines.append(line)
        return self._line_map[number]

    def add(self, event: BytecodeEvent) -> None:
        self.events.append(event)
        location = event.location
        if location.has_source:
            number = location.line
            self.first_line = number if self.first_line is None else min(self.first_line, number)
            self.last_line = number if self.last_line is None else max(self.last_line, number)
            line = self._line(number)
        elif self.lines:
            line = self.lines[-1]
        else:
            line = self._line(0)
        line.texts.append(event.text)

    def close(self) -> None:
        self.lines.sort(key=lambda line: line.number)


def build_blocks(trace: TraceRecord) -> list[Block]:
    """Partition a trace's events into blocks, starting a new one whenever the function changes.

    Events without a source continue the current block and attach to its
    most recently added line.
    """
    blocks: list[Block] = []
    current_function: tuple | None = None

    for event in trace.events:
        location = event.location
        if location.has_source and location.function_key != current_function:
            blocks.append(Block.for_location(location))
            current_function = location.function_key
        elif not blocks:
            blocks.append(Block.for_location(location))
        blocks[-1].add(event)

    for block in blocks:
        block.close()
    return blocks
