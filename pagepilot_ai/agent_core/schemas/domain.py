from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import BaseSchema


class ActionResult(BaseSchema):
    """Outcome of a single capability invocation.

    A non-empty ``error`` marks the invocation as failed regardless of the
    other fields.
    """

    extracted_content: Optional[str] = None
    error: Optional[str] = None
    is_done: bool = False
    include_in_memory: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class ElementNode(BaseSchema):
    index: int
    tag_name: str = ""
    text: str = ""
    xpath: Optional[str] = None
    attributes: Dict[str, str] = Field(default_factory=dict)
    is_file_uploader: bool = False


class ScrollMetrics(BaseSchema):
    scroll_y: float = 0
    viewport_height: float = 0
    scroll_height: float = 0

    @property
    def at_top(self) -> bool:
        return self.scroll_y <= 0

    @property
    def at_bottom(self) -> bool:
        return self.scroll_y + self.viewport_height >= self.scroll_height


class TabInfo(BaseSchema):
    id: int
    url: str
    title: str = ""


class EnvironmentState(BaseSchema):
    """Snapshot of the page the agent is acting on.

    ``elements`` maps the integer indices exposed to the model onto the
    interactive elements of this snapshot. An index is only guaranteed to be
    resolvable until the next snapshot is taken.
    """

    url: str = ""
    title: str = ""
    tabs: List[TabInfo] = Field(default_factory=list)
    elements: Dict[int, ElementNode] = Field(default_factory=dict)
    scroll: ScrollMetrics = Field(default_factory=ScrollMetrics)
    screenshot: Optional[str] = None

    def element(self, index: int) -> Optional[ElementNode]:
        return self.elements.get(index)


class ActionKind(str, Enum):
    click = "click"
    input_text = "input_text"
    send_keys = "send_keys"
    scroll_to_percent = "scroll_to_percent"
    scroll_previous_page = "scroll_previous_page"
    scroll_next_page = "scroll_next_page"
    scroll_to_text = "scroll_to_text"
    element_scroll_info = "element_scroll_info"
    get_dropdown_options = "get_dropdown_options"
    select_dropdown_option = "select_dropdown_option"


class ActionOutcome(BaseSchema):
    ok: bool = True
    message: Optional[str] = None
    data: Any = None
