"""Model invocation layer.

This module wraps a language model client so the rest of the agent core can
ask for "one validated decision" without caring whether the model supports
structured output or image input.

Key Components:
- ModelInvoker: prepare -> structured or free-text call -> manual JSON recovery
- ChatModelClient: protocol implemented by client adapters
- ModelCapabilityTable: versioned vision / structured-output rule table
- extract_json_object: balanced-brace JSON scanner with an explicit result value
"""

from .adapters import PydanticAIChatClient
from .invoker import ChatModelClient, ModelInvoker, RawResponse, StructuredResponse
from .json_extraction import JsonExtraction, extract_json_object, iter_balanced_objects, strip_thinking
from .messages import ChatMessage, ImagePart, Role, TextPart, strip_images, wrap_untrusted_content
from .model_capabilities import (
    DEFAULT_CAPABILITY_TABLE,
    CapabilityRule,
    ModelCapabilities,
    ModelCapabilityTable,
    ProviderType,
)

__all__ = [
    "PydanticAIChatClient",
    "ChatModelClient",
    "ModelInvoker",
    "RawResponse",
    "StructuredResponse",
    "JsonExtraction",
    "extract_json_object",
    "iter_balanced_objects",
    "strip_thinking",
    "ChatMessage",
    "ImagePart",
    "Role",
    "TextPart",
    "strip_images",
    "wrap_untrusted_content",
    "DEFAULT_CAPABILITY_TABLE",
    "CapabilityRule",
    "ModelCapabilities",
    "ModelCapabilityTable",
    "ProviderType",
]
