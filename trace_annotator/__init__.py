"""Trace annotator — summarise and annotate JIT trace attempts."""

from .session import AnnotateSession, Instrumentation  # noqa: F401
from .collector import EventCollector  # noqa: F401
from .dedup import remove_duplicate_traces  # noqa: F401
from .aggregate import (  # noqa: F401
    aggregate,
    classify_by_location,
    classify_by_reason,
)
from .blocks import build_blocks  # noqa: F401
from .decoder import (  # noqa: F401
    DisDecoder,
    OpcodeNameTable,
    TemplateMessageResolver,
)
