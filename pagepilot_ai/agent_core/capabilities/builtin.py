from __future__ import annotations

"""Built-in browser capabilities.

Each handler is a plain async function taking the shared ``ActionContext`` and
its validated input. ``build_default_capabilities`` binds them to a context
and returns the catalogue in presentation order.

Every handler reports ``ACT_START`` (the model-provided intent, or a default
message) followed by ``ACT_OK`` or ``ACT_FAIL`` on the context's event sink.
All environment I/O runs through the context's cancellation signal.
"""

import json
import logging
from functools import partial
from typing import Any, Awaitable, Callable, List, Optional, Type
from urllib.parse import quote_plus, urlparse

from pydantic import BaseModel

from ..abstraction.messages import wrap_untrusted_content
from ..environment import StaleTargetError, resolve_target
from ..events import Actor, ExecutionPhase
from ..profile import FORM_FIELDS
from ..schemas.domain import ActionKind, ActionResult, ElementNode, ScrollMetrics
from .base import ActionContext, Capability
from .inputs import (
    AutoFillFormInput,
    CacheContentInput,
    ClickElementInput,
    CloseTabInput,
    DoneInput,
    GetDropdownOptionsInput,
    GoBackInput,
    GoToUrlInput,
    InputTextInput,
    OpenTabInput,
    ScrollElementInput,
    ScrollToPercentInput,
    ScrollToTextInput,
    SearchGoogleInput,
    SelectDropdownOptionInput,
    SendKeysInput,
    SwitchTabInput,
    UseCredentialInput,
    WaitInput,
)
from .registry import ActionRegistry

logger = logging.getLogger(__name__)

NEW_TAB_TIMEOUT = 3.0


def _start(ctx: ActionContext, intent: Optional[str], default: str) -> None:
    ctx.events.emit(Actor.navigator, ExecutionPhase.act_start, intent or default)


def _ok(ctx: ActionContext, message: str, content: Optional[str] = None) -> ActionResult:
    ctx.events.emit(Actor.navigator, ExecutionPhase.act_ok, message)
    return ActionResult(extracted_content=message if content is None else content, include_in_memory=True)


def _fail(ctx: ActionContext, message: str) -> ActionResult:
    ctx.events.emit(Actor.navigator, ExecutionPhase.act_fail, message)
    return ActionResult(error=message, include_in_memory=True)


async def _lookup(ctx: ActionContext, index: int) -> Optional[ElementNode]:
    state = await ctx.signal.run(ctx.environment.get_current_state())
    return state.element(index)


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


async def done(ctx: ActionContext, params: DoneInput) -> ActionResult:
    """Finish the task and hand ``text`` back as the final answer."""
    ctx.events.emit(Actor.navigator, ExecutionPhase.act_start, "done")
    ctx.events.emit(Actor.navigator, ExecutionPhase.act_ok, params.text)
    return ActionResult(is_done=True, extracted_content=params.text)


async def search_google(ctx: ActionContext, params: SearchGoogleInput) -> ActionResult:
    _start(ctx, params.intent, f"Searching for '{params.query}' in Google")
    await ctx.signal.run(ctx.environment.navigate(f"https://www.google.com/search?q={quote_plus(params.query)}"))
    return _ok(ctx, f"Searched for '{params.query}' in Google")


async def go_to_url(ctx: ActionContext, params: GoToUrlInput) -> ActionResult:
    _start(ctx, params.intent, f"Navigating to {params.url}")
    await ctx.signal.run(ctx.environment.navigate(params.url))
    return _ok(ctx, f"Navigated to {params.url}")


async def go_back(ctx: ActionContext, params: GoBackInput) -> ActionResult:
    _start(ctx, params.intent, "Navigating back")
    await ctx.signal.run(ctx.environment.go_back())
    return _ok(ctx, "Navigated back")


async def wait(ctx: ActionContext, params: WaitInput) -> ActionResult:
    seconds = params.seconds or 3
    _start(ctx, params.intent, f"Waiting for {seconds:g} seconds")
    await ctx.signal.sleep(seconds)
    return _ok(ctx, f"{seconds:g} seconds elapsed")


# ---------------------------------------------------------------------------
# Element interaction
# ---------------------------------------------------------------------------


async def click_element(ctx: ActionContext, params: ClickElementInput) -> ActionResult:
    """Click the element at ``index``, following a tab it opens.

    Raises:
        StaleTargetError: If the index is not part of the current snapshot.
    """
    _start(ctx, params.intent, f"Clicking element with index {params.index}")
    _, node = await ctx.signal.run(resolve_target(ctx.environment, params.index))

    if node.is_file_uploader:
        msg = (
            f"Element with index {params.index} opens a file upload dialog. "
            "File uploads cannot be automated; ask the user to upload the file manually"
        )
        logger.info(msg)
        return ActionResult(extracted_content=msg, include_in_memory=True)

    outcome = await ctx.signal.run(
        ctx.environment.perform_action(node, ActionKind.click, {"use_vision": ctx.use_vision})
    )
    if not outcome.ok:
        ctx.events.emit(
            Actor.navigator,
            ExecutionPhase.act_fail,
            f"Element with index {params.index} is no longer available",
        )
        return ActionResult(error=outcome.message or f"Failed to click element {params.index}")

    label = (outcome.message or node.text).strip()
    msg = f"Clicked element with index {params.index}: {label}" if label else f"Clicked element with index {params.index}"
    new_tab = await ctx.signal.run(ctx.environment.wait_for_new_tab(NEW_TAB_TIMEOUT))
    if new_tab is not None:
        msg += " - New tab opened, switched to it"
        await ctx.signal.run(ctx.environment.switch_tab(new_tab))
    return _ok(ctx, msg)


async def input_text(ctx: ActionContext, params: InputTextInput) -> ActionResult:
    """Type ``text`` into the element at ``index``.

    Raises:
        StaleTargetError: If the index is not part of the current snapshot.
    """
    _start(ctx, params.intent, f"Inputting text into element with index {params.index}")
    _, node = await ctx.signal.run(resolve_target(ctx.environment, params.index))
    outcome = await ctx.signal.run(ctx.environment.perform_action(node, ActionKind.input_text, params.text))
    if not outcome.ok:
        return _fail(ctx, outcome.message or f"Failed to input text into element {params.index}")
    return _ok(ctx, f"Input {params.text} into index {params.index}")


# ---------------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------------


async def switch_tab(ctx: ActionContext, params: SwitchTabInput) -> ActionResult:
    _start(ctx, params.intent, f"Switching to tab {params.tab_id}")
    await ctx.signal.run(ctx.environment.switch_tab(params.tab_id))
    return _ok(ctx, f"Switched to tab {params.tab_id}")


async def open_tab(ctx: ActionContext, params: OpenTabInput) -> ActionResult:
    _start(ctx, params.intent, f"Opening {params.url} in new tab")
    await ctx.signal.run(ctx.environment.open_tab(params.url))
    return _ok(ctx, f"Opened {params.url} in new tab")


async def close_tab(ctx: ActionContext, params: CloseTabInput) -> ActionResult:
    _start(ctx, params.intent, f"Closing tab {params.tab_id}")
    await ctx.signal.run(ctx.environment.close_tab(params.tab_id))
    return _ok(ctx, f"Closed tab {params.tab_id}")


async def cache_content(ctx: ActionContext, params: CacheContentInput) -> ActionResult:
    """Keep page findings in memory. The content came from the page, so it is fenced as untrusted."""
    _start(ctx, params.intent, f"Caching findings: {params.content}")
    raw = f"Cached findings: {params.content}"
    return _ok(ctx, raw, content=wrap_untrusted_content(raw))


# ---------------------------------------------------------------------------
# Scrolling
# ---------------------------------------------------------------------------


async def _scroll_target(ctx: ActionContext, index: Optional[int]) -> tuple[Optional[ElementNode], Optional[ActionResult]]:
    """Resolve an optional scroll container; a missing one becomes a failed result."""
    if index is None:
        return None, None
    node = await _lookup(ctx, index)
    if node is None:
        return None, _fail(ctx, str(StaleTargetError(index)))
    return node, None


async def _scroll_to(ctx: ActionContext, index: Optional[int], y_percent: float, message: str) -> ActionResult:
    node, failure = await _scroll_target(ctx, index)
    if failure is not None:
        return failure
    outcome = await ctx.signal.run(ctx.environment.perform_action(node, ActionKind.scroll_to_percent, y_percent))
    if not outcome.ok:
        return _fail(ctx, outcome.message or "Failed to scroll")
    return _ok(ctx, message)


async def scroll_to_percent(ctx: ActionContext, params: ScrollToPercentInput) -> ActionResult:
    _start(ctx, params.intent, "Scrolling to percent")
    return await _scroll_to(ctx, params.index, params.y_percent, f"Scrolled to percent: {params.y_percent:g}")


async def scroll_to_top(ctx: ActionContext, params: ScrollElementInput) -> ActionResult:
    _start(ctx, params.intent, "Scrolling to top")
    return await _scroll_to(ctx, params.index, 0, "Scrolled to top")


async def scroll_to_bottom(ctx: ActionContext, params: ScrollElementInput) -> ActionResult:
    _start(ctx, params.intent, "Scrolling to bottom")
    return await _scroll_to(ctx, params.index, 100, "Scrolled to bottom")


async def _scroll_metrics(ctx: ActionContext, node: Optional[ElementNode]) -> Optional[ScrollMetrics]:
    if node is None:
        state = await ctx.signal.run(ctx.environment.get_current_state())
        return state.scroll
    try:
        outcome = await ctx.signal.run(ctx.environment.perform_action(node, ActionKind.element_scroll_info))
    except Exception as e:
        if ctx.signal.cancelled:
            raise
        # the page-scroll call decides what to do with an unscrollable element
        logger.warning(f"Could not get element scroll info: {e}")
        return None
    if not outcome.ok or outcome.data is None:
        return None
    return ScrollMetrics.model_validate(outcome.data)


async def previous_page(ctx: ActionContext, params: ScrollElementInput) -> ActionResult:
    _start(ctx, params.intent, "Scrolling to previous page")
    node, failure = await _scroll_target(ctx, params.index)
    if failure is not None:
        return failure

    metrics = await _scroll_metrics(ctx, node)
    if metrics is not None and metrics.at_top:
        if node is None:
            return _ok(ctx, "Page is already at the top")
        return _ok(ctx, f"Element with index {params.index} is already at the top")

    outcome = await ctx.signal.run(ctx.environment.perform_action(node, ActionKind.scroll_previous_page))
    if not outcome.ok:
        return _fail(ctx, outcome.message or "Failed to scroll to previous page")
    return _ok(ctx, "Scrolled to previous page")


async def next_page(ctx: ActionContext, params: ScrollElementInput) -> ActionResult:
    _start(ctx, params.intent, "Scrolling to next page")
    node, failure = await _scroll_target(ctx, params.index)
    if failure is not None:
        return failure

    metrics = await _scroll_metrics(ctx, node)
    if metrics is not None and metrics.at_bottom:
        if node is None:
            return _ok(ctx, "Page is already at the bottom")
        return _ok(ctx, f"Element with index {params.index} is already at the bottom")

    outcome = await ctx.signal.run(ctx.environment.perform_action(node, ActionKind.scroll_next_page))
    if not outcome.ok:
        return _fail(ctx, outcome.message or "Failed to scroll to next page")
    return _ok(ctx, "Scrolled to next page")


async def scroll_to_text(ctx: ActionContext, params: ScrollToTextInput) -> ActionResult:
    _start(ctx, params.intent, f"Scrolling to text: {params.text} (occurrence {params.nth})")
    try:
        outcome = await ctx.signal.run(
            ctx.environment.perform_action(None, ActionKind.scroll_to_text, {"text": params.text, "nth": params.nth})
        )
    except Exception as e:
        if ctx.signal.cancelled:
            raise
        return _fail(ctx, f"Failed to scroll to text: {e}")
    if outcome.ok:
        return _ok(ctx, f"Scrolled to text: {params.text} (occurrence {params.nth})")
    return _ok(ctx, f"Text '{params.text}' (occurrence {params.nth}) not found or not visible on page")


# ---------------------------------------------------------------------------
# Keyboard and dropdowns
# ---------------------------------------------------------------------------


async def send_keys(ctx: ActionContext, params: SendKeysInput) -> ActionResult:
    _start(ctx, params.intent, f"Sending keys: {params.keys}")
    outcome = await ctx.signal.run(ctx.environment.perform_action(None, ActionKind.send_keys, params.keys))
    if not outcome.ok:
        return _fail(ctx, outcome.message or f"Failed to send keys: {params.keys}")
    return _ok(ctx, f"Sent keys: {params.keys}")


async def get_dropdown_options(ctx: ActionContext, params: GetDropdownOptionsInput) -> ActionResult:
    _start(ctx, params.intent, f"Getting options from dropdown with index {params.index}")
    node = await _lookup(ctx, params.index)
    if node is None:
        return _fail(ctx, str(StaleTargetError(params.index)))

    try:
        outcome = await ctx.signal.run(ctx.environment.perform_action(node, ActionKind.get_dropdown_options))
    except Exception as e:
        if ctx.signal.cancelled:
            raise
        return _fail(ctx, f"Failed to get dropdown options: {e}")
    if not outcome.ok:
        return _fail(ctx, f"Failed to get dropdown options: {outcome.message}")

    options = outcome.data or []
    if not options:
        return _ok(ctx, "No options found in dropdown")

    # JSON-encoded text so the model copies the exact option into select_dropdown_option
    lines = [f"{opt['index']}: text={json.dumps(opt['text'])}" for opt in options]
    lines.append("Use the exact text string in select_dropdown_option")
    ctx.events.emit(Actor.navigator, ExecutionPhase.act_ok, f"Got {len(options)} options from dropdown")
    return ActionResult(extracted_content="\n".join(lines), include_in_memory=True)


async def select_dropdown_option(ctx: ActionContext, params: SelectDropdownOptionInput) -> ActionResult:
    _start(ctx, params.intent, f"Selecting option '{params.text}' from dropdown with index {params.index}")
    node = await _lookup(ctx, params.index)
    if node is None:
        return _fail(ctx, str(StaleTargetError(params.index)))
    if node.tag_name.lower() != "select":
        return _fail(
            ctx,
            f"Element with index {params.index} is not a select element (tag: {node.tag_name or 'unknown'})",
        )

    logger.debug(f"Selecting '{params.text}' using xpath: {node.xpath}")
    try:
        outcome = await ctx.signal.run(
            ctx.environment.perform_action(node, ActionKind.select_dropdown_option, params.text)
        )
    except Exception as e:
        if ctx.signal.cancelled:
            raise
        return _fail(ctx, f"Failed to select option: {e}")
    if not outcome.ok:
        return _fail(ctx, f"Failed to select option: {outcome.message}")

    msg = f"Selected option '{params.text}' from dropdown with index {params.index}"
    return _ok(ctx, msg, content=outcome.message or msg)


# ---------------------------------------------------------------------------
# Profile-backed form filling
# ---------------------------------------------------------------------------


async def auto_fill_form(ctx: ActionContext, params: AutoFillFormInput) -> ActionResult:
    """Fill form inputs from the stored user profile.

    Unknown field types and indices missing from the snapshot are skipped.
    """
    _start(ctx, params.intent, "Auto-filling form with profile data")
    if ctx.profile_store is None:
        return _ok(ctx, "No profile data available to fill the form")

    try:
        profile = await ctx.signal.run(ctx.profile_store.get_form_data())
        state = await ctx.signal.run(ctx.environment.get_current_state())

        filled: List[str] = []
        for form_field in params.fields:
            node = state.element(form_field.index)
            if node is None:
                logger.warning(f"Element not found at index {form_field.index}")
                continue
            value = profile.get(form_field.field_type) if form_field.field_type in FORM_FIELDS else None
            if not value:
                continue
            outcome = await ctx.signal.run(ctx.environment.perform_action(node, ActionKind.input_text, value))
            if outcome.ok:
                filled.append(f"{form_field.field_type}: {value}")
    except Exception as e:
        if ctx.signal.cancelled:
            raise
        return _fail(ctx, f"Failed to auto-fill form: {e}")

    if not filled:
        return _ok(ctx, "No profile data available to fill the form")
    return _ok(ctx, f"Auto-filled {len(filled)} form fields")


async def use_credential(ctx: ActionContext, params: UseCredentialInput) -> ActionResult:
    """Log in with a stored credential matching ``site`` or the current page host."""
    _start(ctx, params.intent, "Filling in stored credentials")
    if ctx.profile_store is None:
        return _ok(ctx, "No stored credentials available")

    try:
        state = await ctx.signal.run(ctx.environment.get_current_state())
        site = params.site or urlparse(state.url).hostname or ""
        credential = await ctx.signal.run(ctx.profile_store.get_credential_for_site(site))
        if credential is None:
            return _ok(ctx, f"No stored credentials found for {site or 'this site'}")

        for index, value in ((params.username_index, credential.username), (params.password_index, credential.password)):
            node = state.element(index)
            if node is not None:
                await ctx.signal.run(ctx.environment.perform_action(node, ActionKind.input_text, value))

        await ctx.signal.run(ctx.profile_store.mark_credential_used(credential.id))
    except Exception as e:
        if ctx.signal.cancelled:
            raise
        return _fail(ctx, f"Failed to use credential: {e}")
    return _ok(ctx, f"Filled in credentials for {credential.site}")


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

HandlerFn = Callable[[ActionContext, Any], Awaitable[ActionResult]]

# (handler, input model, description, has positional target, requires settle delay)
_CATALOGUE: List[tuple[HandlerFn, Type[BaseModel], str, bool, bool]] = [
    (done, DoneInput, "Complete task", False, False),
    (search_google, SearchGoogleInput, "Search the query in Google in the current tab", False, True),
    (go_to_url, GoToUrlInput, "Navigate to URL in the current tab", False, True),
    (go_back, GoBackInput, "Go back to the previous page", False, True),
    (wait, WaitInput, "Wait for x seconds, default 3, do NOT use this action unless the user asks to wait explicitly", False, False),
    (click_element, ClickElementInput, "Click element by index", True, True),
    (input_text, InputTextInput, "Input text into an interactive input element", True, True),
    (switch_tab, SwitchTabInput, "Switch to tab by tab id", False, True),
    (open_tab, OpenTabInput, "Open URL in new tab", False, True),
    (close_tab, CloseTabInput, "Close tab by tab id", False, True),
    (cache_content, CacheContentInput, "Cache what you have found so far from the current page for future use", False, False),
    (scroll_to_percent, ScrollToPercentInput, "Scroll the document or an element to a particular vertical position", False, True),
    (scroll_to_top, ScrollElementInput, "Scroll the document or an element to the top", False, True),
    (scroll_to_bottom, ScrollElementInput, "Scroll the document or an element to the bottom", False, True),
    (previous_page, ScrollElementInput, "Scroll the document or an element to the previous page", False, True),
    (next_page, ScrollElementInput, "Scroll the document or an element to the next page", False, True),
    (scroll_to_text, ScrollToTextInput, "If you dont find something which you want to interact with in the current viewport, try to scroll to it", False, True),
    (send_keys, SendKeysInput, "Send strings of special keys like Backspace, Insert, PageDown, Delete, Enter. Shortcuts such as `Control+o`, `Control+Shift+T` are supported as well", False, True),
    (get_dropdown_options, GetDropdownOptionsInput, "Get all options from a native dropdown", True, True),
    (select_dropdown_option, SelectDropdownOptionInput, "Select dropdown option for interactive element index by the text of the option you want to select", True, True),
    (auto_fill_form, AutoFillFormInput, "Fill form fields from the saved user profile (name, email, phone, address)", False, True),
    (use_credential, UseCredentialInput, "Fill a login form with the saved credential for the current site", False, True),
]


def build_default_capabilities(ctx: ActionContext) -> List[Capability]:
    """Bind every built-in handler to ``ctx`` in presentation order."""
    return [
        Capability(
            name=fn.__name__,
            description=description,
            input_model=model,
            handler=partial(fn, ctx),
            has_positional_target=has_target,
            requires_settle_delay=settle,
        )
        for fn, model, description, has_target, settle in _CATALOGUE
    ]


def build_default_registry(ctx: ActionContext) -> ActionRegistry:
    registry = ActionRegistry(signal=ctx.signal)
    for cap in build_default_capabilities(ctx):
        registry.register(cap)
    return registry
