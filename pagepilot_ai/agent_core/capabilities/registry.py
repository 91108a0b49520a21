from __future__ import annotations

"""Action registry.

The registry owns the closed, ordered catalogue of capabilities available to a
planning step. It derives the merged decision schema the language model must
conform to, and resolves a decision back into exactly one capability call.

Catalogue order is the order capabilities are presented to the model, so it is
kept stable across runs.
"""

import asyncio
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, Field, create_model

from ..cancellation import CancellationSignal
from ..errors import InvalidInputError, RequestCancelledError, is_aborted_error
from ..schemas.base import ModelOutputSchema
from ..schemas.domain import ActionResult
from .base import Capability, ResolvedAction

logger = logging.getLogger(__name__)

DECISION_MODEL_NAME = "ActionDecision"


class ActionRegistryError(Exception):
    """Base class for misuse of the registry while it is being assembled."""


class DuplicateCapabilityError(ActionRegistryError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Capability '{name}' is already registered")
        self.name = name


class RegistryLockedError(ActionRegistryError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Cannot register '{name}': the registry is read-only once dispatch has begun")
        self.name = name


class UnknownCapabilityError(InvalidInputError):
    """Raised when a decision names a capability that is not registered."""

    def __init__(self, names: List[str]) -> None:
        super().__init__(f"Unknown capability: {', '.join(names)}")
        self.names = names


class NoDecisionError(InvalidInputError):
    """Raised when a decision populates no capability field."""

    def __init__(self) -> None:
        super().__init__("No action was selected: the decision populates no capability field")


class AmbiguousDecisionError(InvalidInputError):
    """Raised when a decision populates more than one capability field."""

    def __init__(self, names: List[str]) -> None:
        super().__init__(f"Exactly one action must be selected per step, got {len(names)}: {', '.join(names)}")
        self.names = names


class ActionRegistry:
    """
    Ordered catalogue of capabilities for one planning step.

    Notes:
        - ``register`` rejects duplicate names instead of overwriting them.
        - The catalogue is frozen by the first ``dispatch``; later registration
          raises ``RegistryLockedError``.
        - ``get`` raises ``KeyError`` for unknown names.
    """

    def __init__(self, signal: Optional[CancellationSignal] = None) -> None:
        """
        Args:
            signal: The cancellation signal the registered handlers await
                through, when they share one. Drivers use it to check that they
                cancel the same run the handlers observe.
        """
        self._caps: Dict[str, Capability] = {}
        self._locked = False
        self._signal = signal

    def register(self, cap: Capability) -> None:
        """
        Append a capability to the catalogue.

        Raises:
            DuplicateCapabilityError: If the name is already registered.
            RegistryLockedError: If dispatch has already begun.
        """
        if self._locked:
            raise RegistryLockedError(cap.name)
        if cap.name in self._caps:
            raise DuplicateCapabilityError(cap.name)
        self._caps[cap.name] = cap

    def get(self, name: str) -> Capability:
        return self._caps[name]

    def has(self, name: str) -> bool:
        return name in self._caps

    def names(self) -> List[str]:
        return list(self._caps)

    @property
    def capabilities(self) -> Tuple[Capability, ...]:
        return tuple(self._caps.values())

    @property
    def signal(self) -> Optional[CancellationSignal]:
        return self._signal

    @property
    def locked(self) -> bool:
        return self._locked

    def __len__(self) -> int:
        return len(self._caps)

    def __iter__(self) -> Iterator[Capability]:
        return iter(self.capabilities)

    def describe(self) -> str:
        """Render every capability's prompt entry in catalogue order."""
        return "\n".join(cap.prompt() for cap in self._caps.values())

    def build_decision_schema(self) -> Type[BaseModel]:
        """
        Build the merged decision model.

        Every capability contributes one optional, nullable field named after
        it and typed by its input model. The model is expected to populate
        exactly one of them; ``resolve`` enforces that.
        """
        fields: Dict[str, Any] = {
            cap.name: (Optional[cap.input_model], Field(default=None, description=cap.description))
            for cap in self._caps.values()
        }
        return create_model(DECISION_MODEL_NAME, __base__=ModelOutputSchema, **fields)

    def _populated(self, decision: Any) -> List[Tuple[str, Any]]:
        if isinstance(decision, BaseModel):
            items: Mapping[str, Any] = {name: getattr(decision, name) for name in type(decision).model_fields}
        elif isinstance(decision, Mapping):
            items = decision
        else:
            raise InvalidInputError(f"Decision must be an object, got {type(decision).__name__}")
        return [(name, value) for name, value in items.items() if value is not None]

    def resolve(self, decision: Any) -> ResolvedAction:
        """
        Narrow a decision down to a single validated capability call.

        Args:
            decision: A mapping or an instance of the decision model.

        Returns:
            ResolvedAction: The chosen capability and its validated parameters.

        Raises:
            UnknownCapabilityError: A populated field names no registered capability.
            NoDecisionError: No field is populated.
            AmbiguousDecisionError: More than one field is populated.
            InvalidInputError: The capability rejected its parameters.
        """
        populated = self._populated(decision)
        unknown = [name for name, _ in populated if name not in self._caps]
        if unknown:
            raise UnknownCapabilityError(unknown)
        if not populated:
            raise NoDecisionError()
        if len(populated) > 1:
            # catalogue order keeps the error message deterministic
            order = {name: i for i, name in enumerate(self._caps)}
            raise AmbiguousDecisionError(sorted((name for name, _ in populated), key=order.__getitem__))

        name, raw = populated[0]
        cap = self._caps[name]
        return ResolvedAction(capability=cap, params=cap.validate_input(raw))

    async def dispatch(self, decision: Any) -> ActionResult:
        """
        Resolve ``decision`` and run the chosen handler.

        Validation errors propagate. Handler failures are converted into an
        ``ActionResult`` carrying ``error``, except cancellation which always
        propagates.
        """
        self._locked = True
        resolved = self.resolve(decision)
        return await self.execute(resolved)

    async def execute(self, resolved: ResolvedAction) -> ActionResult:
        """Run an already resolved action with the dispatch failure policy."""
        self._locked = True
        cap = resolved.capability
        logger.debug(f"Dispatching capability '{cap.name}'")
        try:
            return await cap.handler(resolved.params)
        except (RequestCancelledError, asyncio.CancelledError):
            raise
        except Exception as e:
            if is_aborted_error(e):
                raise RequestCancelledError(str(e) or "Request cancelled", cause=e) from e
            logger.warning(f"Capability '{cap.name}' failed: {e}")
            return ActionResult(error=str(e) or type(e).__name__, include_in_memory=True)
