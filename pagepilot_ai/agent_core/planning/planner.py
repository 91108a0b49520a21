from __future__ import annotations

"""Periodic task planning.

The planner steps back from individual actions every few steps and asks the
model whether the task is complete and what should happen next.

The planner is intentionally constrained:

- It does not execute capabilities.
- It does not decide retries; failures propagate as classified errors.
- Its ``next_steps`` are guidance for the navigator, not a binding plan.
"""

import logging
from typing import Optional, Sequence

from ..abstraction.invoker import ModelInvoker
from ..cancellation import CancellationSignal
from ..events import Actor, EventSink, ExecutionPhase, LoggingEventSink
from ..prompts import PlannerPrompt
from ..schemas.domain import EnvironmentState
from .output import PlannerOutput

logger = logging.getLogger(__name__)


class TaskPlanner:
    """Planner that evaluates progress through a ``ModelInvoker``.

    The invoker decides whether the answer comes back through structured output
    or manual JSON recovery; either way the result is a validated
    ``PlannerOutput``.
    """

    def __init__(
        self,
        invoker: ModelInvoker,
        *,
        events: Optional[EventSink] = None,
        prompt: Optional[PlannerPrompt] = None,
    ) -> None:
        self._invoker = invoker
        self._events = events or LoggingEventSink()
        self._prompt = prompt or PlannerPrompt()

    async def plan(
        self,
        *,
        task: str,
        state: EnvironmentState,
        history: Sequence[str] = (),
        signal: Optional[CancellationSignal] = None,
    ) -> PlannerOutput:
        """Evaluate progress on ``task``.

        Parameters
        ----------
        task:
            The user's goal.
        state:
            The current environment snapshot.
        history:
            Memory entries of the actions taken so far, oldest first.

        Returns
        -------
        PlannerOutput
            The validated assessment.
        """
        self._events.emit(Actor.planner, ExecutionPhase.step_start, "Planning...")
        messages = self._prompt.build_messages(task=task, state=state, history=history)
        try:
            output = await self._invoker.invoke(messages, PlannerOutput, signal=signal)
        except Exception as e:
            self._events.emit(Actor.planner, ExecutionPhase.step_fail, f"Planning failed: {e}")
            raise
        logger.debug(f"Planner output: done={output.done}, web_task={output.web_task}")
        self._events.emit(Actor.planner, ExecutionPhase.step_ok, output.next_steps or output.final_answer or "Planned")
        return output
