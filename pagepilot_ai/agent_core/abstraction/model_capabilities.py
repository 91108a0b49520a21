"""Model capability descriptors.

Whether a model accepts images and whether it can be asked for schema-constrained
output is looked up in an explicit, versioned rule table instead of being sniffed
ad hoc at call sites. The table is injected into ``ModelInvoker`` so hosts can
prepend their own rules for models the defaults do not know about.

Rules are tried in order; the first one matching both provider and model name
wins. Unknown combinations fall back to no vision (images are stripped) and
structured output enabled.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Pattern, Tuple, Union

logger = logging.getLogger(__name__)


class ProviderType(str, Enum):
    openai = "openai"
    anthropic = "anthropic"
    google = "google"
    deepseek = "deepseek"
    llama = "llama"
    groq = "groq"
    ollama = "ollama"
    openrouter = "openrouter"
    azure_openai = "azure_openai"


_PROVIDER_ALIASES = {
    "gemini": ProviderType.google,
    "google-gla": ProviderType.google,
    "google_genai": ProviderType.google,
    "azure": ProviderType.azure_openai,
}


def normalize_provider(provider: Union[str, ProviderType, None]) -> Optional[str]:
    """Map a provider identifier onto its canonical ``ProviderType`` value, if known."""
    if provider is None:
        return None
    if isinstance(provider, ProviderType):
        return provider.value
    key = provider.strip().lower()
    if key in _PROVIDER_ALIASES:
        return _PROVIDER_ALIASES[key].value
    return key


@dataclass(frozen=True)
class ModelCapabilities:
    vision: bool = False
    structured_output: bool = True


@dataclass(frozen=True)
class CapabilityRule:
    """One row of the capability table.

    Attributes:
        provider: Provider the rule applies to; ``None`` matches any provider.
        pattern: Case-insensitive regex searched in the model name; ``None``
            matches any model.
        vision: Whether matching models accept image input.
        structured_output: Whether matching models support schema-constrained output.
    """

    provider: Optional[ProviderType]
    pattern: Optional[str]
    vision: bool
    structured_output: bool = True
    _compiled: Optional[Pattern[str]] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.pattern is not None:
            object.__setattr__(self, "_compiled", re.compile(self.pattern, re.IGNORECASE))

    def matches(self, provider: Optional[str], model: str) -> bool:
        if self.provider is not None and normalize_provider(provider) != self.provider.value:
            return False
        if self._compiled is not None and not self._compiled.search(model):
            return False
        return True

    @property
    def capabilities(self) -> ModelCapabilities:
        return ModelCapabilities(vision=self.vision, structured_output=self.structured_output)


@dataclass(frozen=True)
class ModelCapabilityTable:
    version: str
    rules: Tuple[CapabilityRule, ...]
    default: ModelCapabilities = ModelCapabilities()

    def lookup(self, provider: Union[str, ProviderType, None], model: str) -> ModelCapabilities:
        """Return the capabilities of the first rule matching ``provider`` and ``model``."""
        normalized = normalize_provider(provider)
        for rule in self.rules:
            if rule.matches(normalized, model):
                return rule.capabilities
        logger.debug(f"[{model}] No capability rule for provider {normalized!r} (table {self.version}), using defaults")
        return self.default

    def supports_vision(self, provider: Union[str, ProviderType, None], model: str) -> bool:
        return self.lookup(provider, model).vision

    def supports_structured_output(self, provider: Union[str, ProviderType, None], model: str) -> bool:
        return self.lookup(provider, model).structured_output

    def extend(self, *rules: CapabilityRule, version: Optional[str] = None) -> "ModelCapabilityTable":
        """Return a new table whose ``rules`` take precedence over this table's."""
        return ModelCapabilityTable(
            version=version or f"{self.version}+custom",
            rules=tuple(rules) + self.rules,
            default=self.default,
        )


_LLAMA = r"llama-4|llama-3\.3"
_FLASH_OR_PRO_V2 = r"(flash|pro).*2\.|2\..*(flash|pro)"

DEFAULT_CAPABILITY_TABLE = ModelCapabilityTable(
    version="2025.1",
    rules=(
        # Llama API rejects json_schema response formats
        CapabilityRule(None, _LLAMA, vision=False, structured_output=False),
        CapabilityRule(ProviderType.llama, None, vision=False, structured_output=False),
        # reasoning-only models answer in free text
        CapabilityRule(None, r"^deepseek-(reasoner|r1)$", vision=False, structured_output=False),
        CapabilityRule(ProviderType.deepseek, None, vision=False),
        CapabilityRule(ProviderType.google, r"preview", vision=False),
        CapabilityRule(ProviderType.google, _FLASH_OR_PRO_V2, vision=True),
        CapabilityRule(ProviderType.google, None, vision=False),
        CapabilityRule(ProviderType.openai, r"gpt-4o|gpt-5|vision|gpt-4-turbo", vision=True),
        CapabilityRule(ProviderType.openai, None, vision=False),
        CapabilityRule(ProviderType.anthropic, r"claude-3|claude-4", vision=True),
        CapabilityRule(ProviderType.anthropic, None, vision=False),
    ),
)
