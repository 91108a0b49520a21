"""Chat model client adapters.

Available Adapters:
- PydanticAIChatClient: ``ChatModelClient`` built on ``pydantic_ai.Agent``
"""

from .pydantic_ai import PydanticAIChatClient

__all__ = [
    "PydanticAIChatClient",
]
