from __future__ import annotations

from pagepilot_ai.agent_core.abstraction.messages import UNTRUSTED_OPEN, Role
from pagepilot_ai.agent_core.prompts import NavigatorPrompt, render_history, render_state
from pagepilot_ai.agent_core.schemas.domain import ElementNode, EnvironmentState, ScrollMetrics


def _state(**kwargs) -> EnvironmentState:
    defaults = dict(
        url="https://example.com",
        title="Example",
        elements={
            2: ElementNode(index=2, tag_name="a", text="Docs", attributes={"href": "/docs"}),
            1: ElementNode(index=1, tag_name="button", text="Menu"),
        },
    )
    defaults.update(kwargs)
    return EnvironmentState(**defaults)


def test_render_state_orders_and_fences_elements() -> None:
    text = render_state(_state())

    assert text.index("[1]<button>Menu</button>") < text.index('[2]<a href="/docs">Docs</a>')
    assert UNTRUSTED_OPEN in text
    assert "[Start of page]" in text


def test_render_state_reports_scroll_position() -> None:
    text = render_state(_state(scroll=ScrollMetrics(scroll_y=400, viewport_height=800, scroll_height=2000)))

    assert "... 400 pixels above - scroll up to see more ..." in text
    assert "... 800 pixels below - scroll down to see more ..." in text
    assert "[Start of page]" not in text


def test_render_state_limits_elements() -> None:
    text = render_state(_state(), max_elements=1)
    assert "[1]<button>" in text
    assert "[2]<a" not in text


def test_render_empty_page() -> None:
    assert "Interactive elements: empty page" in render_state(EnvironmentState())


def test_render_history() -> None:
    assert render_history([]) == "No previous actions."
    assert render_history(["a", "b"]) == "1. a\n2. b"


def test_navigator_system_prompt_lists_actions() -> None:
    prompt = NavigatorPrompt("Complete task:\n{done: {'text': {'type': 'string', 'required': true}}}")

    assert "exactly ONE key" in prompt.system_prompt
    assert '{"click_element": {"intent"' in prompt.system_prompt
    assert prompt.system_prompt.rstrip().endswith("'required': true}}}")


def test_navigator_messages_without_vision() -> None:
    messages = NavigatorPrompt("actions").build_messages(
        task="Open docs", state=_state(screenshot="aGVsbG8="), history=["Clicked menu"], plan="Use the top nav", step=2, max_steps=10
    )

    system, user = messages
    assert system.role == Role.system
    assert isinstance(user.content, str)
    assert "Your ultimate task is: Open docs" in user.text
    assert "1. Clicked menu" in user.text
    assert "Planner guidance:\nUse the top nav" in user.text
    assert "Current step: 3/10" in user.text


def test_navigator_messages_with_screenshot() -> None:
    messages = NavigatorPrompt("actions").build_messages(task="t", state=_state(screenshot="aGVsbG8="), use_vision=True)

    user = messages[1]
    assert user.has_images
    assert user.images[0].data == "aGVsbG8="


def test_vision_without_screenshot_stays_text() -> None:
    messages = NavigatorPrompt("actions").build_messages(task="t", state=_state(), use_vision=True)
    assert not messages[1].has_images
