"""Execution event stream.

Capabilities and the execution driver report lifecycle transitions through an
``EventSink``. The sink is an injected service: callers construct one and pass
it down instead of reaching for a process-wide singleton.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Protocol

from pydantic import Field

from .schemas.base import BaseSchema

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Actor(str, Enum):
    system = "system"
    user = "user"
    planner = "planner"
    navigator = "navigator"


class ExecutionPhase(str, Enum):
    task_start = "task.start"
    task_ok = "task.ok"
    task_fail = "task.fail"
    task_cancel = "task.cancel"
    step_start = "step.start"
    step_ok = "step.ok"
    step_fail = "step.fail"
    act_start = "act.start"
    act_ok = "act.ok"
    act_fail = "act.fail"


class ExecutionEvent(BaseSchema):
    actor: Actor
    phase: ExecutionPhase
    message: str
    created_at: datetime = Field(default_factory=_utc_now)


class EventSink(Protocol):
    """Protocol for lifecycle event consumers. Acknowledgement is not required."""

    def emit(self, actor: Actor, phase: ExecutionPhase, message: str) -> None: ...


class LoggingEventSink:
    """Event sink that writes every event to the module logger."""

    def emit(self, actor: Actor, phase: ExecutionPhase, message: str) -> None:
        level = logging.WARNING if phase in (ExecutionPhase.act_fail, ExecutionPhase.step_fail) else logging.INFO
        logger.log(level, f"[{actor.value}] {phase.value}: {message}")


class EventLog:
    """In-memory event sink that keeps events in emission order."""

    def __init__(self) -> None:
        self.events: List[ExecutionEvent] = []

    def emit(self, actor: Actor, phase: ExecutionPhase, message: str) -> None:
        self.events.append(ExecutionEvent(actor=actor, phase=phase, message=message))

    def phases(self) -> List[ExecutionPhase]:
        return [e.phase for e in self.events]

    def messages(self, phase: ExecutionPhase) -> List[str]:
        return [e.message for e in self.events if e.phase == phase]

    def clear(self) -> None:
        self.events.clear()
