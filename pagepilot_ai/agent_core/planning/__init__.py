"""Planning components.

The planner periodically evaluates progress towards the user's task and
produces a ``PlannerOutput``: an observation, the next steps, and whether the
task is already done (with its final answer).

The planner itself does not execute capabilities; its guidance is folded into
the navigator prompt by ``pagepilot_ai.agent_core.runtime.AgentExecutor``.
"""

from .output import PlannerOutput
from .planner import TaskPlanner

__all__ = [
    "PlannerOutput",
    "TaskPlanner",
]
