"""Action registry and built-in capabilities.

 A *capability* is one named, schema-validated unit of work the model may
 choose per step.

 - ``ActionRegistry`` holds the ordered catalogue and derives the merged
   decision schema the model must fill in.
 - ``ActionRegistry.resolve`` enforces "exactly one populated field" and
   validates the chosen capability's parameters.
 - ``ActionRegistry.dispatch`` runs the handler, converting handler failures
   (but never cancellation) into ``ActionResult.error``.

 This package exports:

 - ``Capability``/``ActionContext``/``ResolvedAction``: the descriptor and its execution inputs.
 - ``ActionRegistry`` and its errors.
 - ``build_default_capabilities``/``build_default_registry``: the browser catalogue.
 """

from .base import ActionContext, Capability, ResolvedAction
from .builtin import build_default_capabilities, build_default_registry
from .registry import (
    ActionRegistry,
    ActionRegistryError,
    AmbiguousDecisionError,
    DuplicateCapabilityError,
    NoDecisionError,
    RegistryLockedError,
    UnknownCapabilityError,
)

__all__ = [
    "ActionContext",
    "Capability",
    "ResolvedAction",
    "ActionRegistry",
    "ActionRegistryError",
    "AmbiguousDecisionError",
    "DuplicateCapabilityError",
    "NoDecisionError",
    "RegistryLockedError",
    "UnknownCapabilityError",
    "build_default_capabilities",
    "build_default_registry",
]
