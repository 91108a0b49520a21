"""Automation environment boundary.

The agent core never drives a browser itself. Capabilities talk to an
``Environment`` implementation supplied by the host application (a Playwright
wrapper, a browser extension bridge, a test double).
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from .schemas.domain import ActionKind, ActionOutcome, ElementNode, EnvironmentState


class StaleTargetError(Exception):
    """Raised when an element index no longer resolves in the current snapshot."""

    def __init__(self, index: int) -> None:
        super().__init__(f"Element with index {index} does not exist - retry or use alternative actions")
        self.index = index


class Environment(Protocol):
    """Protocol for the interactive page the agent acts on."""

    async def get_current_state(self) -> EnvironmentState:
        """Take a fresh snapshot. Indices from older snapshots may become stale."""
        ...

    async def perform_action(self, target: Optional[ElementNode], kind: ActionKind, payload: Any = None) -> ActionOutcome:
        """Perform an element-level or page-level interaction.

        ``target`` is ``None`` for page-level interactions (scrolling the
        document, sending keys to the focused element).
        """
        ...

    async def navigate(self, url: str) -> None: ...

    async def go_back(self) -> None: ...

    async def open_tab(self, url: str) -> int: ...

    async def close_tab(self, tab_id: int) -> None: ...

    async def switch_tab(self, tab_id: int) -> None: ...

    async def wait_for_new_tab(self, timeout: float) -> Optional[int]:
        """Return the id of a tab opened within ``timeout`` seconds, if any."""
        ...


async def resolve_target(environment: Environment, index: int) -> tuple[EnvironmentState, ElementNode]:
    """Resolve ``index`` against a fresh snapshot.

    Raises:
        StaleTargetError: If the index does not exist in the snapshot.
    """
    state = await environment.get_current_state()
    node = state.element(index)
    if node is None:
        raise StaleTargetError(index)
    return state, node
