from __future__ import annotations

"""Executor configuration, dependency bundle and LangGraph state types.

- ``ExecutorConfig`` holds the run limits (step budget, failure budget,
  planning cadence, settle delay).
- ``ExecutorDeps`` collects the collaborators the executor needs.
- ``_GraphState`` is the mutable state passed between LangGraph nodes.
- ``ExecutionReport`` is what a finished run returns.
"""

from dataclasses import dataclass, field
from typing import List, NotRequired, Optional, Required, TypedDict

from pydantic import Field

from pagepilot_ai.core.config import Settings

from ..abstraction.invoker import ModelInvoker
from ..capabilities import ActionRegistry, ResolvedAction
from ..cancellation import CancellationSignal
from ..environment import Environment
from ..events import EventSink, LoggingEventSink
from ..planning import TaskPlanner
from ..schemas.base import BaseSchema
from ..schemas.domain import ActionResult


@dataclass(frozen=True)
class ExecutorConfig:
    """Run limits for ``AgentExecutor``.

    Attributes:
        max_steps: Step budget; exhausting it raises ``MaxStepsReachedError``.
        max_failures: Consecutive failures tolerated before ``MaxFailuresReachedError``.
        planning_interval: Run the planner every N steps (0 disables planning).
        settle_delay: Seconds to wait after capabilities that change the page.
        use_vision: Send screenshots to models that accept images.
    """

    max_steps: int = 100
    max_failures: int = 3
    planning_interval: int = 3
    settle_delay: float = 1.0
    use_vision: bool = True

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ExecutorConfig":
        if settings is None:
            from pagepilot_ai.core.config import settings as default_settings

            settings = default_settings
        return cls(
            max_steps=settings.max_steps,
            max_failures=settings.max_failures,
            planning_interval=settings.planning_interval,
            settle_delay=settings.settle_delay,
            use_vision=settings.use_vision,
        )

    @property
    def recursion_limit(self) -> int:
        # each step visits at most plan, decide and act
        return self.max_steps * 3 + 10


@dataclass(frozen=True)
class ExecutorDeps:
    """Dependency bundle for ``AgentExecutor``.

    ``signal`` may be left unset when the registry was built with one; the
    executor then adopts the registry's signal. Setting a different signal
    from the registry's is rejected by ``AgentExecutor``.
    """

    environment: Environment
    registry: ActionRegistry
    navigator: ModelInvoker
    planner: Optional[TaskPlanner] = None
    events: EventSink = field(default_factory=LoggingEventSink)
    signal: Optional[CancellationSignal] = None


class ExecutionReport(BaseSchema):
    done: bool = False
    final_answer: Optional[str] = None
    steps: int = 0
    results: List[ActionResult] = Field(default_factory=list)


class _GraphState(TypedDict):
    """Mutable LangGraph state for a single run.

    Required keys:

    - ``task``: the user's goal.
    - ``step``: number of steps taken so far.
    - ``failures``: consecutive failures.
    - ``history``: memory entries folded into later prompts.
    - ``results``: every ``ActionResult`` produced, in order.

    Optional keys:

    - ``plan``: latest planner guidance.
    - ``plan_step``: the step the planner last ran at.
    - ``pending``: the action resolved by ``decide`` for ``act`` to run.
    - ``done`` / ``final_answer``: set when the task completes.
    """

    task: Required[str]
    step: Required[int]
    failures: Required[int]
    history: Required[List[str]]
    results: Required[List[ActionResult]]
    plan: NotRequired[Optional[str]]
    plan_step: NotRequired[int]
    pending: NotRequired[Optional[ResolvedAction]]
    done: NotRequired[bool]
    final_answer: NotRequired[Optional[str]]
