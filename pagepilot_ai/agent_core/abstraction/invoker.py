"""Model invocation layer.

``ModelInvoker`` turns a conversation into exactly one validated instance of a
requested pydantic schema, whether or not the underlying model supports
schema-constrained output.

Per call:

1. images are stripped when the capability table says the model has no vision;
2. models with structured output are asked for a parsed value (and the raw
   text as a fallback);
3. other models are asked for free text;
4. free or unparsed raw text goes through manual JSON recovery.

Every provider call runs through the cancellation signal. Provider failures
leave this layer as ``ClassifiedError`` subclasses, never as raw SDK errors.
Nothing here retries; that is the driver's decision.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, List, Optional, Protocol, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from pagepilot_ai.core.logging_config import get_logger

from ..cancellation import CancellationSignal
from ..errors import ClassifiedError, ResponseParseError, classify_error
from .json_extraction import extract_json_object
from .messages import ChatMessage, strip_images
from .model_capabilities import DEFAULT_CAPABILITY_TABLE, ModelCapabilities, ModelCapabilityTable

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)
T = TypeVar("T")


@dataclass(frozen=True)
class RawResponse:
    text: str


@dataclass(frozen=True)
class StructuredResponse:
    """Result of a structured call: the parsed value if the client produced one, plus the raw text."""

    parsed: Any = None
    raw: Optional[str] = None


class ChatModelClient(Protocol):
    """Protocol for language model clients consumed by ``ModelInvoker``."""

    @property
    def provider(self) -> str: ...

    @property
    def model_name(self) -> str: ...

    async def invoke(self, messages: Sequence[ChatMessage]) -> RawResponse: ...

    async def invoke_structured(self, messages: Sequence[ChatMessage], schema: Type[BaseModel]) -> StructuredResponse: ...


class ModelInvoker:
    """Obtain one schema-conforming decision per call from a chat model.

    Attributes:
        client: The wrapped model client.
        capability_table: Rule table deciding vision and structured-output support.
        use_vision: Host-level switch; when False images are always stripped.
    """

    def __init__(
        self,
        client: ChatModelClient,
        *,
        signal: Optional[CancellationSignal] = None,
        capability_table: ModelCapabilityTable = DEFAULT_CAPABILITY_TABLE,
        use_vision: bool = True,
    ) -> None:
        self.client = client
        self.signal = signal or CancellationSignal()
        self.capability_table = capability_table
        self.use_vision = use_vision
        self._capabilities = capability_table.lookup(client.provider, client.model_name)
        logger.debug(
            f"[{client.model_name}] capabilities: vision={self._capabilities.vision}, "
            f"structured_output={self._capabilities.structured_output} (table {capability_table.version})"
        )

    @property
    def capabilities(self) -> ModelCapabilities:
        return self._capabilities

    @property
    def sends_images(self) -> bool:
        return self.use_vision and self._capabilities.vision

    def prepare(self, messages: Sequence[ChatMessage]) -> List[ChatMessage]:
        if self.sends_images:
            return list(messages)
        if any(m.has_images for m in messages):
            logger.debug(f"[{self.client.model_name}] Stripping images from messages - model does not support vision")
        return strip_images(messages)

    async def invoke(
        self,
        messages: Sequence[ChatMessage],
        schema: Type[SchemaT],
        *,
        signal: Optional[CancellationSignal] = None,
    ) -> SchemaT:
        """Ask the model for one instance of ``schema``.

        Args:
            messages: The conversation, newest last.
            schema: Pydantic model the answer must validate against.
            signal: Overrides the invoker's own cancellation signal for this call.

        Returns:
            A validated ``schema`` instance.

        Raises:
            RequestCancelledError: The signal fired or the provider reported an abort.
            ResponseParseError: No valid instance could be recovered.
            ClassifiedError: Any other provider failure, classified.
        """
        signal = signal or self.signal
        prepared = self.prepare(messages)
        model_name = self.client.model_name

        if self._capabilities.structured_output:
            logger.debug(f"[{model_name}] Invoking with structured output ({schema.__name__}, {len(prepared)} messages)")
            response = await self._call(signal, self.client.invoke_structured(prepared, schema))
            if response.parsed is not None:
                return self._validate(schema, response.parsed)
            if response.raw:
                logger.warning(f"[{model_name}] Structured output missing, recovering JSON from raw response")
                return self.parse_text(response.raw, schema)
            raise ResponseParseError("Could not parse response with structured output")

        logger.debug(f"[{model_name}] Using manual JSON extraction ({schema.__name__})")
        response = await self._call(signal, self.client.invoke(prepared))
        return self.parse_text(response.text, schema)

    async def _call(self, signal: CancellationSignal, awaitable: Awaitable[T]) -> T:
        try:
            return await signal.run(awaitable)
        except (ClassifiedError, asyncio.CancelledError):
            raise
        except Exception as e:
            classified = classify_error(e)
            logger.error(f"[{self.client.model_name}] LLM call failed: {classified}")
            raise classified from e

    def parse_text(self, text: str, schema: Type[SchemaT]) -> SchemaT:
        """Recover a ``schema`` instance from free-form model text.

        Raises:
            ResponseParseError: No JSON object was found, or it failed validation.
        """
        extraction = extract_json_object(text)
        if not extraction.ok:
            logger.warning(f"[{self.client.model_name}] Manual JSON extraction failed: {extraction.error}")
            raise ResponseParseError(f"Could not parse response: {extraction.error}")
        return self._validate(schema, extraction.value)

    @staticmethod
    def _validate(schema: Type[SchemaT], value: Any) -> SchemaT:
        if isinstance(value, schema):
            return value
        if isinstance(value, BaseModel):
            value = value.model_dump()
        try:
            return schema.model_validate(value)
        except ValidationError as e:
            raise ResponseParseError(f"Could not validate model output against {schema.__name__}", cause=e) from e
