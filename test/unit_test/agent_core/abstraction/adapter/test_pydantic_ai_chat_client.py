from __future__ import annotations

import base64
from typing import List

import pytest
from pydantic_ai import BinaryContent, ImageUrl, models
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    UserPromptPart,
)
from pydantic_ai.models.function import AgentInfo, FunctionModel

from pagepilot_ai.agent_core.abstraction.adapters import PydanticAIChatClient
from pagepilot_ai.agent_core.abstraction.invoker import ModelInvoker
from pagepilot_ai.agent_core.abstraction.messages import ChatMessage, ImagePart
from pagepilot_ai.agent_core.abstraction.messages import TextPart as ChatTextPart
from pagepilot_ai.agent_core.schemas.base import ModelOutputSchema


class _Answer(ModelOutputSchema):
    value: int


@pytest.fixture(autouse=True)
def _no_real_model_requests(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(models, "ALLOW_MODEL_REQUESTS", False)


def _conversation() -> List[ChatMessage]:
    return [ChatMessage.system("Be brief"), ChatMessage.user("What now?")]


def test_provider_and_name_from_identifier() -> None:
    client = PydanticAIChatClient("anthropic:claude-3-5-sonnet-latest")
    assert client.provider == "anthropic"
    assert client.model_name == "claude-3-5-sonnet-latest"


def test_explicit_provider_overrides_model() -> None:
    client = PydanticAIChatClient(FunctionModel(lambda m, i: ModelResponse(parts=[])), provider="openai", model_name="gpt-4o")
    assert (client.provider, client.model_name) == ("openai", "gpt-4o")


@pytest.mark.asyncio
async def test_invoke_returns_free_text() -> None:
    seen: List[ModelMessage] = []

    def reply(messages: List[ModelMessage], info: AgentInfo) -> ModelResponse:
        seen.extend(messages)
        return ModelResponse(parts=[TextPart('{"value": 7}')])

    client = PydanticAIChatClient(FunctionModel(reply))
    response = await client.invoke(_conversation())

    assert response.text == '{"value": 7}'
    parts = seen[0].parts
    assert any(isinstance(p, SystemPromptPart) and p.content == "Be brief" for p in parts)
    assert any(isinstance(p, UserPromptPart) and p.content == "What now?" for p in parts)


@pytest.mark.asyncio
async def test_invoke_structured_parses_output_tool() -> None:
    def reply(messages: List[ModelMessage], info: AgentInfo) -> ModelResponse:
        return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, {"value": 3})])

    client = PydanticAIChatClient(FunctionModel(reply))
    response = await client.invoke_structured(_conversation(), _Answer)

    assert response.parsed == _Answer(value=3)


@pytest.mark.asyncio
async def test_invoke_structured_keeps_raw_reply_on_rejection() -> None:
    def reply(messages: List[ModelMessage], info: AgentInfo) -> ModelResponse:
        return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, {"value": "seven"})])

    client = PydanticAIChatClient(FunctionModel(reply))
    response = await client.invoke_structured(_conversation(), _Answer)

    assert response.parsed is None
    assert '"seven"' in response.raw


@pytest.mark.asyncio
async def test_rejected_output_is_not_retried() -> None:
    calls: List[int] = []

    def reply(messages: List[ModelMessage], info: AgentInfo) -> ModelResponse:
        calls.append(len(messages))
        return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, {"value": "seven"})])

    client = PydanticAIChatClient(FunctionModel(reply))
    response = await client.invoke_structured(_conversation(), _Answer)

    assert response.parsed is None
    assert len(calls) == 1

@pytest.mark.asyncio
async def test_drives_model_invoker() -> None:
    def reply(messages: List[ModelMessage], info: AgentInfo) -> ModelResponse:
        return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, {"value": 11})])

    client = PydanticAIChatClient(FunctionModel(reply), provider="openai", model_name="gpt-4o")
    result = await ModelInvoker(client).invoke(_conversation(), _Answer)

    assert result.value == 11


class TestConvertMessages:
    def test_single_turn(self) -> None:
        system_prompt, history, prompt = PydanticAIChatClient.convert_messages(_conversation())

        assert system_prompt == ["Be brief"]
        assert history == []
        assert prompt == "What now?"

    def test_multi_turn_moves_system_into_history(self) -> None:
        messages = [
            ChatMessage.system("Be brief"),
            ChatMessage.user("first"),
            ChatMessage.assistant('{"go_back": {}}'),
            ChatMessage.user("second"),
        ]

        system_prompt, history, prompt = PydanticAIChatClient.convert_messages(messages)

        assert system_prompt == []
        assert prompt == "second"
        assert isinstance(history[0], ModelRequest)
        assert isinstance(history[0].parts[0], SystemPromptPart)
        assert isinstance(history[0].parts[1], UserPromptPart)
        assert isinstance(history[1], ModelResponse)
        assert history[1].parts[0].content == '{"go_back": {}}'

    def test_images_become_user_content(self) -> None:
        data = base64.b64encode(b"png-bytes").decode()
        messages = [
            ChatMessage.user(
                [
                    ChatTextPart(text="Look"),
                    ImagePart(data=data, media_type="image/png"),
                    ImagePart(url="https://mock/shot.jpg"),
                ]
            )
        ]

        _, _, prompt = PydanticAIChatClient.convert_messages(messages)

        assert prompt[0] == "Look"
        assert isinstance(prompt[1], BinaryContent)
        assert prompt[1].data == b"png-bytes"
        assert isinstance(prompt[2], ImageUrl)

    def test_requires_trailing_user_message(self) -> None:
        with pytest.raises(ValueError):
            PydanticAIChatClient.convert_messages([ChatMessage.system("x"), ChatMessage.assistant("y")])
