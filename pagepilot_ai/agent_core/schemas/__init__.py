from .base import BaseSchema, ModelOutputSchema
from .coercion import LenientBool, coerce_bool
from .domain import (
    ActionKind,
    ActionOutcome,
    ActionResult,
    ElementNode,
    EnvironmentState,
    ScrollMetrics,
    TabInfo,
)

__all__ = [
    "BaseSchema",
    "ModelOutputSchema",
    "LenientBool",
    "coerce_bool",
    "ActionKind",
    "ActionOutcome",
    "ActionResult",
    "ElementNode",
    "EnvironmentState",
    "ScrollMetrics",
    "TabInfo",
]
