from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, Union

import pytest
from pydantic import BaseModel

from pagepilot_ai.agent_core.abstraction.invoker import RawResponse, StructuredResponse
from pagepilot_ai.agent_core.abstraction.messages import ChatMessage
from pagepilot_ai.agent_core.cancellation import CancellationSignal
from pagepilot_ai.agent_core.capabilities import ActionContext, ActionRegistry, build_default_registry
from pagepilot_ai.agent_core.events import EventLog
from pagepilot_ai.agent_core.profile import InMemoryProfileStore, UserProfile
from pagepilot_ai.agent_core.schemas.domain import (
    ActionKind,
    ActionOutcome,
    ElementNode,
    EnvironmentState,
    ScrollMetrics,
    TabInfo,
)

Scripted = Union[ActionOutcome, BaseException]


class FakeEnvironment:
    """In-memory page double recording every call it receives."""

    def __init__(self, state: Optional[EnvironmentState] = None) -> None:
        self.state = state or EnvironmentState(url="https://example.com/login", title="Example")
        self.calls: List[Tuple[str, Any]] = []
        self.outcomes: Dict[ActionKind, Scripted] = {}
        self.new_tab: Optional[int] = None
        self.state_errors: List[BaseException] = []
        self._next_tab = 100

    async def get_current_state(self) -> EnvironmentState:
        self.calls.append(("get_current_state", None))
        if self.state_errors:
            raise self.state_errors.pop(0)
        return self.state

    async def perform_action(self, target: Optional[ElementNode], kind: ActionKind, payload: Any = None) -> ActionOutcome:
        self.calls.append((kind.value, (target.index if target else None, payload)))
        scripted = self.outcomes.get(kind)
        if isinstance(scripted, BaseException):
            raise scripted
        return scripted or ActionOutcome()

    async def navigate(self, url: str) -> None:
        self.calls.append(("navigate", url))
        self.state = self.state.model_copy(update={"url": url})

    async def go_back(self) -> None:
        self.calls.append(("go_back", None))

    async def open_tab(self, url: str) -> int:
        self._next_tab += 1
        self.calls.append(("open_tab", url))
        return self._next_tab

    async def close_tab(self, tab_id: int) -> None:
        self.calls.append(("close_tab", tab_id))

    async def switch_tab(self, tab_id: int) -> None:
        self.calls.append(("switch_tab", tab_id))

    async def wait_for_new_tab(self, timeout: float) -> Optional[int]:
        self.calls.append(("wait_for_new_tab", timeout))
        return self.new_tab

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]


class ScriptedChatClient:
    """Chat client double replaying queued replies in order."""

    def __init__(self, provider: str = "openai", model_name: str = "gpt-4o") -> None:
        self._provider = provider
        self._model_name = model_name
        self.replies: List[Any] = []
        self.received: List[Sequence[ChatMessage]] = []

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model_name(self) -> str:
        return self._model_name

    def _next(self) -> Any:
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def invoke(self, messages: Sequence[ChatMessage]) -> RawResponse:
        self.received.append(list(messages))
        reply = self._next()
        return reply if isinstance(reply, RawResponse) else RawResponse(text=reply)

    async def invoke_structured(self, messages: Sequence[ChatMessage], schema: Type[BaseModel]) -> StructuredResponse:
        self.received.append(list(messages))
        reply = self._next()
        return reply if isinstance(reply, StructuredResponse) else StructuredResponse(parsed=reply, raw=None)


def _page_state() -> EnvironmentState:
    return EnvironmentState(
        url="https://example.com/login",
        title="Example login",
        tabs=[TabInfo(id=1, url="https://example.com/login", title="Example login")],
        elements={
            1: ElementNode(index=1, tag_name="input", attributes={"name": "email"}),
            2: ElementNode(index=2, tag_name="input", attributes={"type": "password"}),
            3: ElementNode(index=3, tag_name="button", text="Sign in"),
            4: ElementNode(index=4, tag_name="select", text="Country", xpath="//select[1]"),
            5: ElementNode(index=5, tag_name="input", attributes={"type": "file"}, is_file_uploader=True),
        },
        scroll=ScrollMetrics(scroll_y=0, viewport_height=800, scroll_height=2400),
    )


@pytest.fixture
def environment() -> FakeEnvironment:
    return FakeEnvironment(_page_state())


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def signal() -> CancellationSignal:
    return CancellationSignal()


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    store = InMemoryProfileStore(
        UserProfile(first_name="Ada", last_name="Lovelace", email="ada@example.com", country="UK")
    )
    store.add_credential("example.com", "ada", "s3cret")
    return store


@pytest.fixture
def action_ctx(
    environment: FakeEnvironment,
    events: EventLog,
    signal: CancellationSignal,
    profile_store: InMemoryProfileStore,
) -> ActionContext:
    return ActionContext(environment=environment, events=events, signal=signal, profile_store=profile_store)


@pytest.fixture
def registry(action_ctx: ActionContext) -> ActionRegistry:
    return build_default_registry(action_ctx)


@pytest.fixture
def chat_client() -> ScriptedChatClient:
    return ScriptedChatClient()


@pytest.fixture
def chat_client_factory() -> Type[ScriptedChatClient]:
    return ScriptedChatClient
