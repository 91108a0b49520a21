"""Runtime execution driver.

 ``AgentExecutor`` is the LangGraph-based control loop that repeatedly asks the
 navigator model for one action, dispatches it through the ``ActionRegistry``
 and reacts to classified failures.

 This package exports:

 - ``AgentExecutor``: the driver.
 - ``ExecutorConfig``/``ExecutorDeps``: its limits and collaborators.
 - ``ExecutionReport``: the outcome of a completed run.
 """

from .executor import AgentExecutor
from .models import ExecutionReport, ExecutorConfig, ExecutorDeps

__all__ = [
    "AgentExecutor",
    "ExecutionReport",
    "ExecutorConfig",
    "ExecutorDeps",
]
