"""Lenient scalar types for model-produced payloads.

Language models frequently emit booleans as text (``"True"``, ``" false "``).
``LenientBool`` accepts those spellings and nothing else, so an unexpected
value such as ``"maybe"`` is a validation error rather than a silent default.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BeforeValidator


def coerce_bool(value: Any) -> Any:
    """Convert ``"true"``/``"false"`` strings (any case, surrounding whitespace) to ``bool``.

    Non-string values are returned unchanged for pydantic's own bool validation.

    Raises:
        ValueError: If ``value`` is a string other than true/false.
    """
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        raise ValueError(f'Invalid boolean string: "{value}"')
    return value


LenientBool = Annotated[bool, BeforeValidator(coerce_bool)]
