"""Input models of the built-in capabilities.

Field descriptions double as the parameter type hints rendered into the
navigator prompt, so they are phrased for the language model.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from ..schemas.base import ModelOutputSchema
from ..schemas.coercion import LenientBool

_INTENT = "purpose of this action"


class DoneInput(ModelOutputSchema):
    text: str = Field(description="string")
    success: LenientBool = Field(default=True, description="boolean")


class SearchGoogleInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    query: str = Field(description="search query")


class GoToUrlInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    url: str = Field(description="url to open")


class GoBackInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)


class WaitInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    seconds: float = Field(default=3, ge=0, description="amount of seconds")


class ClickElementInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    index: int = Field(description="index of the element")


class InputTextInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    index: int = Field(description="index of the element")
    text: str = Field(description="text to input")


class SwitchTabInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    tab_id: int = Field(description="id of the tab to switch to")


class OpenTabInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    url: str = Field(description="url to open")


class CloseTabInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    tab_id: int = Field(description="id of the tab to close")


class CacheContentInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    content: str = Field(description="content to cache")


class ScrollToPercentInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    y_percent: float = Field(ge=0, le=100, description="percentage to scroll to - min 0, max 100; 0 is top, 100 is bottom")
    index: Optional[int] = Field(default=None, description="index of the element")


class ScrollElementInput(ModelOutputSchema):
    """Shared by scroll_to_top, scroll_to_bottom, previous_page and next_page."""

    intent: Optional[str] = Field(default=None, description=_INTENT)
    index: Optional[int] = Field(default=None, description="index of the element")


class ScrollToTextInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    text: str = Field(description="text to scroll to")
    nth: int = Field(default=1, ge=1, description="which occurrence of the text to scroll to, 1-indexed")


class SendKeysInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    keys: str = Field(description="keys to send")


class GetDropdownOptionsInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    index: int = Field(description="index of the dropdown element")


class SelectDropdownOptionInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    index: int = Field(description="index of the dropdown element")
    text: str = Field(description="text of the option")


class FormField(ModelOutputSchema):
    index: int = Field(description="index of the input element")
    field_type: str = Field(
        description="one of first_name, last_name, email, phone, street, city, state, zip_code, country"
    )


class AutoFillFormInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    fields: List[FormField] = Field(description="list of {index, field_type} pairs to fill from the user profile")


class UseCredentialInput(ModelOutputSchema):
    intent: Optional[str] = Field(default=None, description=_INTENT)
    username_index: int = Field(description="index of the username or email input")
    password_index: int = Field(description="index of the password input")
    site: Optional[str] = Field(default=None, description="site to look up; defaults to the current page host")
