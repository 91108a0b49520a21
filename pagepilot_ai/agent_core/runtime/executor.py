from __future__ import annotations

"""LangGraph execution driver.

``AgentExecutor`` runs the decide/act loop for one task.

Execution model
--------------

- The executor runs a LangGraph state machine over a mutable ``_GraphState``.
- Each iteration is one step: optionally consult the planner, ask the
  navigator model for exactly one action, dispatch it, and fold the result
  into the history used by later prompts.

Failure policy
--------------

- Retryable failures (unparsable output, invalid decisions, unclassified
  provider errors, failed action results) increase a consecutive-failure
  counter. Reaching ``max_failures`` raises ``MaxFailuresReachedError``.
- Authentication, forbidden, bad-request and environment-conflict errors end
  the run immediately.
- Cancellation always propagates.
- Exhausting ``max_steps`` raises ``MaxStepsReachedError``.
"""

import asyncio
import logging
from typing import Optional

from langgraph.graph import END, StateGraph

from ..cancellation import CancellationSignal
from ..errors import (
    ENVIRONMENT_CONFLICT_HINT,
    FORBIDDEN_HINT,
    ClassifiedError,
    ErrorKind,
    MaxFailuresReachedError,
    MaxStepsReachedError,
    RequestCancelledError,
    classify_error,
)
from ..events import Actor, ExecutionPhase
from ..prompts import NavigatorPrompt
from ..schemas.domain import ActionResult, EnvironmentState
from .models import ExecutionReport, ExecutorConfig, ExecutorDeps, _GraphState

logger = logging.getLogger(__name__)


class AgentExecutor:
    """Drive a task to completion through the registry and the navigator model.

    The executor is deliberately small and orchestration-oriented: it delegates
    decisions to the ``ModelInvoker`` and work to the capabilities registered
    in ``ExecutorDeps.registry``.
    """

    def __init__(self, *, deps: ExecutorDeps, config: Optional[ExecutorConfig] = None) -> None:
        """
        Initialize the AgentExecutor.

        Args:
            deps: The collaborators (environment, registry, invokers, event sink, signal).
            config: Run limits; defaults to ``ExecutorConfig.from_settings()``.

        Raises:
            ValueError: If ``deps.signal`` differs from the signal the registry's
                handlers were bound to.
        """
        self._deps = deps
        self._signal = self._resolve_signal(deps)
        self._config = config or ExecutorConfig.from_settings()
        self._decision_schema = deps.registry.build_decision_schema()
        self._prompt = NavigatorPrompt(deps.registry.describe())
        self._graph = self._build_graph()

    @staticmethod
    def _resolve_signal(deps: ExecutorDeps) -> CancellationSignal:
        bound = deps.registry.signal
        if deps.signal is not None and bound is not None and deps.signal is not bound:
            raise ValueError("ExecutorDeps.signal must be the signal the registry's handlers are bound to")
        return deps.signal or bound or CancellationSignal()

    @property
    def config(self) -> ExecutorConfig:
        return self._config

    @property
    def signal(self) -> CancellationSignal:
        return self._signal

    def cancel(self, reason: Optional[str] = None) -> None:
        """Fire the shared cancellation signal."""
        self._signal.cancel(reason)

    def _build_graph(self):
        """Build and compile the LangGraph state machine."""
        g: StateGraph = StateGraph(_GraphState)
        g.add_node("start", self._node_start)
        g.add_node("plan", self._node_plan)
        g.add_node("decide", self._node_decide)
        g.add_node("act", self._node_act)
        g.add_node("finish", self._node_finish)

        g.set_entry_point("start")
        g.add_conditional_edges("start", self._route_next, {"plan": "plan", "decide": "decide", "finish": "finish"})
        g.add_conditional_edges("plan", self._route_after_plan, {"decide": "decide", "finish": "finish"})
        g.add_conditional_edges(
            "decide",
            self._route_after_decide,
            {"act": "act", "plan": "plan", "decide": "decide", "finish": "finish"},
        )
        g.add_conditional_edges("act", self._route_next, {"plan": "plan", "decide": "decide", "finish": "finish"})
        g.add_edge("finish", END)
        return g.compile()

    async def run(self, task: str) -> ExecutionReport:
        """Execute ``task`` until the model reports it done.

        Returns:
            ExecutionReport: The final answer, step count and every action result.

        Raises:
            MaxStepsReachedError: The step budget ran out.
            MaxFailuresReachedError: Too many consecutive failures.
            RequestCancelledError: The cancellation signal fired.
            ClassifiedError: A non-retryable model failure (authentication, forbidden, ...).
        """
        events = self._deps.events
        events.emit(Actor.system, ExecutionPhase.task_start, task)
        state: _GraphState = {"task": task, "step": 0, "failures": 0, "history": [], "results": []}
        try:
            final = await self._graph.ainvoke(state, config={"recursion_limit": self._config.recursion_limit})
        except RequestCancelledError as e:
            events.emit(Actor.system, ExecutionPhase.task_cancel, e.message)
            raise
        except asyncio.CancelledError:
            events.emit(Actor.system, ExecutionPhase.task_cancel, "Task cancelled")
            raise
        except ClassifiedError as e:
            events.emit(Actor.system, ExecutionPhase.task_fail, self._describe_failure(e))
            raise
        except Exception as e:
            classified = classify_error(e)
            events.emit(Actor.system, ExecutionPhase.task_fail, self._describe_failure(classified))
            raise classified from e

        report = ExecutionReport(
            done=bool(final.get("done")),
            final_answer=final.get("final_answer"),
            steps=int(final["step"]),
            results=list(final["results"]),
        )
        events.emit(Actor.system, ExecutionPhase.task_ok, report.final_answer or "Task completed")
        return report

    @staticmethod
    def _describe_failure(error: ClassifiedError) -> str:
        if error.kind == ErrorKind.forbidden:
            return FORBIDDEN_HINT
        if error.kind == ErrorKind.environment_conflict:
            return ENVIRONMENT_CONFLICT_HINT
        return str(error)

    def _wants_plan(self, state: _GraphState) -> bool:
        interval = self._config.planning_interval
        return self._deps.planner is not None and interval > 0 and state["step"] % interval == 0

    def _route_next(self, state: _GraphState) -> str:
        if state.get("done"):
            return "finish"
        return "plan" if self._wants_plan(state) and state.get("plan_step") != state["step"] else "decide"

    def _route_after_plan(self, state: _GraphState) -> str:
        return "finish" if state.get("done") else "decide"

    def _route_after_decide(self, state: _GraphState) -> str:
        if state.get("pending") is not None:
            return "act"
        return self._route_next(state)

    async def _node_start(self, state: _GraphState) -> _GraphState:
        """Graph entry node. Currently a no-op."""
        return state

    def _check_budget(self, state: _GraphState) -> None:
        self._signal.raise_if_cancelled()
        if state["step"] >= self._config.max_steps:
            raise MaxStepsReachedError(f"Task failed: max steps ({self._config.max_steps}) reached")

    def _record_failure(self, state: _GraphState, message: str, cause: Optional[BaseException] = None) -> None:
        state["failures"] += 1
        self._deps.events.emit(Actor.navigator, ExecutionPhase.step_fail, message)
        logger.warning(f"Step {state['step'] + 1} failed ({state['failures']}/{self._config.max_failures}): {message}")
        if state["failures"] >= self._config.max_failures:
            raise MaxFailuresReachedError(
                f"Task failed: max consecutive failures ({self._config.max_failures}) reached", cause=cause
            )

    async def _snapshot(self) -> EnvironmentState:
        """Read the page state, classifying environment failures."""
        try:
            return await self._signal.run(self._deps.environment.get_current_state())
        except (ClassifiedError, asyncio.CancelledError):
            raise
        except Exception as e:
            logger.warning(f"Reading the environment state failed: {e}")
            raise classify_error(e) from e

    async def _node_plan(self, state: _GraphState) -> _GraphState:
        """Consult the planner; a ``done`` assessment completes the run."""
        self._check_budget(state)
        planner = self._deps.planner
        assert planner is not None
        state["plan_step"] = state["step"]
        try:
            snapshot = await self._snapshot()
            output = await planner.plan(
                task=state["task"], state=snapshot, history=state["history"], signal=self._signal
            )
        except ClassifiedError as e:
            if not e.kind.is_retryable:
                raise
            state["step"] += 1
            self._record_failure(state, f"Planning failed: {e}", e)
            return state

        if output.done:
            state["done"] = True
            state["final_answer"] = output.final_answer
            return state
        state["plan"] = output.guidance()
        return state

    async def _node_decide(self, state: _GraphState) -> _GraphState:
        """Ask the navigator for exactly one action and resolve it against the registry."""
        self._check_budget(state)
        state["pending"] = None
        events = self._deps.events
        events.emit(Actor.navigator, ExecutionPhase.step_start, f"Step {state['step'] + 1}")

        try:
            snapshot = await self._snapshot()
            messages = self._prompt.build_messages(
                task=state["task"],
                state=snapshot,
                history=state["history"],
                plan=state.get("plan"),
                step=state["step"],
                max_steps=self._config.max_steps,
                use_vision=self._config.use_vision,
            )
            decision = await self._deps.navigator.invoke(messages, self._decision_schema, signal=self._signal)
            state["pending"] = self._deps.registry.resolve(decision)
        except ClassifiedError as e:
            if not e.kind.is_retryable:
                raise
            state["history"].append(f"Action error: {e.message}")
            state["step"] += 1
            self._record_failure(state, e.message, e)
        return state

    async def _node_act(self, state: _GraphState) -> _GraphState:
        """Dispatch the pending action and fold its result into the run state."""
        resolved = state.get("pending")
        assert resolved is not None
        state["pending"] = None

        result: ActionResult = await self._deps.registry.execute(resolved)
        state["results"].append(result)
        state["step"] += 1

        if result.include_in_memory:
            if result.error:
                state["history"].append(f"{resolved.name}: Action error: {result.error}")
            elif result.extracted_content:
                state["history"].append(f"{resolved.name}: Action result: {result.extracted_content}")

        if result.error:
            self._record_failure(state, result.error)
            return state

        state["failures"] = 0
        self._deps.events.emit(Actor.navigator, ExecutionPhase.step_ok, resolved.name)
        if result.is_done:
            state["done"] = True
            state["final_answer"] = result.extracted_content
            return state

        if resolved.capability.requires_settle_delay and self._config.settle_delay > 0:
            await self._signal.sleep(self._config.settle_delay)
        return state

    async def _node_finish(self, state: _GraphState) -> _GraphState:
        logger.info(f"Task finished after {state['step']} step(s)")
        return state
