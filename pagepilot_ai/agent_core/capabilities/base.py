from __future__ import annotations

"""Capability descriptor and execution context.

A capability is the unit of work a single planning turn may choose. It pairs a
pydantic input model with an async handler:

- the input model validates the parameters the language model produced,
- the handler performs the work (delegating I/O to the environment) and
  returns an ``ActionResult``.

Capabilities never decide retry policy; failures are either returned in the
result or raised for the registry to convert.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel, ValidationError

from ..cancellation import CancellationSignal
from ..environment import Environment
from ..errors import InvalidInputError
from ..events import EventSink, LoggingEventSink
from ..profile import ProfileStore
from ..schemas.domain import ActionResult

TARGET_FIELD = "index"

Handler = Callable[[Any], Awaitable[ActionResult]]


@dataclass(frozen=True)
class ActionContext:
    """Services shared by the built-in capability handlers.

    Attributes
    ----------
    environment:
        The page automation collaborator.
    signal:
        The cancellation signal of the current run. Every handler bound to
        this context awaits through it.
    events:
        Sink receiving ACT_START / ACT_OK / ACT_FAIL lifecycle events.
    profile_store:
        Optional profile/credential lookups for form-filling capabilities.
    use_vision:
        Whether element interactions may rely on visual highlighting.
    """

    environment: Environment
    signal: CancellationSignal
    events: EventSink = field(default_factory=LoggingEventSink)
    profile_store: Optional[ProfileStore] = None
    use_vision: bool = False


@dataclass(frozen=True)
class Capability:
    """Immutable descriptor of one named, schema-validated unit of work."""

    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Handler
    has_positional_target: bool = False
    requires_settle_delay: bool = True

    def __post_init__(self) -> None:
        if not self.name.isidentifier():
            raise ValueError(f"capability name must be a valid identifier: {self.name!r}")

    @property
    def takes_no_input(self) -> bool:
        return not self.input_model.model_fields

    def validate_input(self, raw: Any) -> BaseModel:
        """Validate ``raw`` against the input model.

        Capabilities whose input model declares no fields ignore the payload.

        Raises:
            InvalidInputError: Carrying pydantic's rejection detail.
        """
        if self.takes_no_input:
            return self.input_model()
        if isinstance(raw, self.input_model):
            return raw
        if isinstance(raw, BaseModel):
            raw = raw.model_dump()
        try:
            return self.input_model.model_validate(raw)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid input for '{self.name}': {e}", cause=e) from e

    async def call(self, raw: Any) -> ActionResult:
        """Validate ``raw`` and invoke the handler with the validated value."""
        params = self.validate_input(raw)
        return await self.handler(params)

    def prompt(self) -> str:
        """Render the capability description and parameter summary for the model prompt."""
        props = []
        for key, info in self.input_model.model_fields.items():
            kind = info.description or (info.annotation.__name__ if isinstance(info.annotation, type) else str(info.annotation))
            flag = "'required': true" if info.is_required() else "'optional': true"
            props.append(f"'{key}': {{'type': '{kind}', {flag}}}")
        body = ", ".join(props)
        return f"{self.description}:\n{{{self.name}: {{{body}}}}}"

    def extract_target(self, params: Any) -> Optional[int]:
        """Return the element index referenced by ``params``, if this capability has one."""
        if not self.has_positional_target:
            return None
        if isinstance(params, dict):
            value = params.get(TARGET_FIELD)
        else:
            value = getattr(params, TARGET_FIELD, None)
        return value if isinstance(value, int) else None

    def replace_target(self, params: Any, new_index: int) -> bool:
        """Point ``params`` at ``new_index`` in place.

        Returns:
            bool: False when this capability has no positional target or
            ``params`` cannot hold one.
        """
        if not self.has_positional_target:
            return False
        if isinstance(params, dict):
            params[TARGET_FIELD] = new_index
            return True
        if isinstance(params, BaseModel) and TARGET_FIELD in type(params).model_fields:
            setattr(params, TARGET_FIELD, new_index)
            return True
        return False


@dataclass(frozen=True)
class ResolvedAction:
    """A decision narrowed down to one capability and its validated parameters."""

    capability: Capability
    params: BaseModel

    @property
    def name(self) -> str:
        return self.capability.name

    def to_dict(self) -> Dict[str, Any]:
        return {self.capability.name: self.params.model_dump(exclude_none=True)}
