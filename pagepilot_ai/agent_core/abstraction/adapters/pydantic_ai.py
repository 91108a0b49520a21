"""Pydantic AI chat client adapter.

This module implements the ``ChatModelClient`` protocol on top of
``pydantic_ai.Agent`` so any model Pydantic AI supports (``"openai:gpt-4o"``,
``"anthropic:claude-3-5-sonnet-latest"``, a ``FunctionModel`` in tests, ...)
can drive the invocation layer.
"""

import base64
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel
from pydantic_ai import Agent, BinaryContent, ImageUrl, UnexpectedModelBehavior, capture_run_messages
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelRequestPart,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    UserPromptPart,
)
from pydantic_ai.models import Model

from pagepilot_ai.core.logging_config import get_logger

from ..invoker import RawResponse, StructuredResponse
from ..messages import ChatMessage, ImagePart, Role
from ..messages import TextPart as ChatTextPart

logger = get_logger(__name__)

UserContent = Union[str, ImageUrl, BinaryContent]


def _split_model_id(model: Union[str, Model]) -> Tuple[str, str]:
    if isinstance(model, str):
        provider, _, name = model.partition(":")
        return (provider, name) if name else ("", provider)
    return getattr(model, "system", "") or "", getattr(model, "model_name", "") or ""


class PydanticAIChatClient:
    """``ChatModelClient`` backed by a Pydantic AI ``Agent``.

    A fresh agent is built for every call with the requested output type. Output
    validation is not retried inside Pydantic AI (``retries=0``) because
    retry policy belongs to the execution driver.

    Attributes:
        model: A Pydantic AI model instance or ``"provider:model"`` identifier.
        provider: Provider identifier used for capability lookups.
        model_name: Model name used for capability lookups.
    """

    def __init__(
        self,
        model: Union[str, Model],
        *,
        provider: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        model_settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.model = model
        default_provider, default_name = _split_model_id(model)
        self._provider = provider or default_provider
        self._model_name = model_name or default_name
        settings: Dict[str, Any] = dict(model_settings or {})
        if temperature is not None:
            settings["temperature"] = temperature
        self._model_settings = settings

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model_name(self) -> str:
        return self._model_name

    def build_agent(self, output_type: Any, system_prompt: Sequence[str]) -> Agent:
        kwargs: Dict[str, Any] = {"output_type": output_type, "retries": 0}
        if system_prompt:
            kwargs["system_prompt"] = tuple(system_prompt)
        if self._model_settings:
            kwargs["model_settings"] = self._model_settings
        return Agent(self.model, **kwargs)

    async def invoke(self, messages: Sequence[ChatMessage]) -> RawResponse:
        system_prompt, history, user_prompt = self.convert_messages(messages)
        agent = self.build_agent(str, system_prompt)
        result = await agent.run(user_prompt, message_history=history or None)
        return RawResponse(text=result.output)

    async def invoke_structured(self, messages: Sequence[ChatMessage], schema: Type[BaseModel]) -> StructuredResponse:
        """Run with ``schema`` as output type, keeping the raw reply if validation fails."""
        system_prompt, history, user_prompt = self.convert_messages(messages)
        agent = self.build_agent(schema, system_prompt)
        with capture_run_messages() as run_messages:
            try:
                result = await agent.run(user_prompt, message_history=history or None)
            except UnexpectedModelBehavior as e:
                raw = _last_response_text(run_messages)
                logger.warning(f"[{self._model_name}] Structured output rejected: {e}")
                return StructuredResponse(parsed=None, raw=raw)
        return StructuredResponse(parsed=result.output, raw=_last_response_text(result.all_messages()))

    @staticmethod
    def convert_messages(
        messages: Sequence[ChatMessage],
    ) -> Tuple[List[str], List[ModelMessage], Union[str, List[UserContent]]]:
        """Split a conversation into system prompts, Pydantic AI history and the current user prompt.

        The trailing run of user messages becomes the prompt; everything up to
        the last assistant message becomes history. System text goes to the
        agent's ``system_prompt`` when there is no history, otherwise into the
        first history request (Pydantic AI skips agent system prompts when a
        history is given).
        """
        last_assistant = max((i for i, m in enumerate(messages) if m.role == Role.assistant), default=-1)
        head, tail = messages[: last_assistant + 1], messages[last_assistant + 1 :]

        system_prompt = [m.text for m in messages if m.role == Role.system]
        prompt: List[UserContent] = []
        for message in tail:
            if message.role == Role.user:
                prompt.extend(_user_content(message))
        if not prompt:
            raise ValueError("conversation must end with at least one user message")

        history: List[ModelMessage] = []
        pending: List[ModelRequestPart] = []
        for message in head:
            if message.role == Role.user:
                pending.append(UserPromptPart(content=_user_content(message)))
            elif message.role == Role.assistant:
                history.append(ModelRequest(parts=pending))
                pending = []
                history.append(ModelResponse(parts=[TextPart(content=message.text)]))

        if history:
            first = history[0]
            system_parts: List[ModelRequestPart] = [SystemPromptPart(content=text) for text in system_prompt]
            history[0] = ModelRequest(parts=system_parts + list(first.parts))
            system_prompt = []
            history = [m for m in history if m.parts]

        user_prompt: Union[str, List[UserContent]] = prompt[0] if len(prompt) == 1 and isinstance(prompt[0], str) else prompt
        return system_prompt, history, user_prompt


def _user_content(message: ChatMessage) -> List[UserContent]:
    if isinstance(message.content, str):
        return [message.content]
    content: List[UserContent] = []
    for part in message.content:
        if isinstance(part, ChatTextPart):
            content.append(part.text)
        elif isinstance(part, ImagePart):
            if part.url:
                content.append(ImageUrl(url=part.url))
            elif part.data:
                content.append(BinaryContent(data=base64.b64decode(part.data), media_type=part.media_type))
    return content


def _last_response_text(messages: Sequence[ModelMessage]) -> Optional[str]:
    """Text (or output tool arguments) of the newest model response."""
    for message in reversed(messages):
        if not isinstance(message, ModelResponse):
            continue
        chunks: List[str] = []
        for part in message.parts:
            if isinstance(part, TextPart) and part.content:
                chunks.append(part.content)
            elif isinstance(part, ToolCallPart):
                chunks.append(part.args_as_json_str())
        if chunks:
            return "\n".join(chunks)
    return None
