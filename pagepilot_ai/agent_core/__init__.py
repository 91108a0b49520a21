"""Agent orchestration core.

This package turns a natural-language goal into a bounded sequence of
validated actions against an interactive page.

Design overview
---------------

- ``capabilities``: the ``ActionRegistry`` holding the closed catalogue of
  capabilities, the merged decision schema, and the dispatch protocol that
  enforces "exactly one action per step".
- ``abstraction``: the ``ModelInvoker`` that obtains one schema-conforming
  decision per call from any chat model, with manual JSON recovery and
  vision gating.
- ``errors``: the error taxonomy and classification rules the driver uses to
  decide between retrying and aborting.
- ``runtime``: ``AgentExecutor``, a LangGraph driver tying the above together.

Collaborators (the page environment, the profile store, the event sink) are
consumed through the protocols in ``environment``, ``profile`` and ``events``.

Typical usage
-------------

1. Build an ``ActionContext`` around an ``Environment`` implementation and
   the run's ``CancellationSignal``.
2. Build the registry with ``build_default_registry(ctx)``.
3. Wrap a chat client in a ``ModelInvoker``.
4. Run ``AgentExecutor(deps=...).run(task)``; the executor cancels through the
   signal the registry was built with.
"""

from .cancellation import CancellationSignal
from .errors import (
    ChatModelAuthError,
    ChatModelBadRequestError,
    ChatModelForbiddenError,
    ClassifiedError,
    EnvironmentConflictError,
    ErrorKind,
    InvalidInputError,
    MaxFailuresReachedError,
    MaxStepsReachedError,
    RequestCancelledError,
    ResponseParseError,
    UnclassifiedError,
    classify_error,
)
from .events import Actor, EventLog, EventSink, ExecutionPhase, LoggingEventSink

__all__ = [
    "CancellationSignal",
    "ChatModelAuthError",
    "ChatModelBadRequestError",
    "ChatModelForbiddenError",
    "ClassifiedError",
    "EnvironmentConflictError",
    "ErrorKind",
    "InvalidInputError",
    "MaxFailuresReachedError",
    "MaxStepsReachedError",
    "RequestCancelledError",
    "ResponseParseError",
    "UnclassifiedError",
    "classify_error",
    "Actor",
    "EventLog",
    "EventSink",
    "ExecutionPhase",
    "LoggingEventSink",
]
