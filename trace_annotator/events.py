"""Trace notifications delivered by the instrumentation subsystem.

One model per notification kind; ``kind`` is the discriminator.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _TraceNotification(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    trace_id: int


class BeginEvent(_TraceNotification):
    kind: Literal["begin"] = "begin"
    function: Any = None
    pc: int = 0


class RecordEvent(_TraceNotification):
    kind: Literal["record"] = "record"
    function: Any = None
    pc: int = 0
    depth: int = Field(default=0, ge=0)


class EndEvent(_TraceNotification):
    kind: Literal["end"] = "end"


class AbortEvent(_TraceNotification):
    kind: Literal["abort"] = "abort"
    function: Any = None
    pc: int = 0
    code: int | str = 0
    info: Any = None


TraceEvent = Annotated[
    Union[BeginEvent, RecordEvent, EndEvent, AbortEvent],
    Field(discriminator="kind"),
]
