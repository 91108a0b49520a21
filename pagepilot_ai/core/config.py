"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# LLM Provider Configuration Models
# =====================================================================


class OpenAIConfig(BaseModel):
    """OpenAI API configuration."""

    api_key: Optional[SecretStr] = Field(
        default=None, alias="OPENAI_API_KEY", description="OpenAI API key for authentication"
    )
    base_url: Optional[str] = Field(
        default=None, alias="OPENAI_BASE_URL", description="Custom OpenAI API base URL (optional)"
    )

    model_config = {"populate_by_name": True}


class AnthropicConfig(BaseModel):
    """Anthropic API configuration."""

    api_key: Optional[SecretStr] = Field(
        default=None, alias="ANTHROPIC_API_KEY", description="Anthropic API key for authentication"
    )

    model_config = {"populate_by_name": True}


class GoogleConfig(BaseModel):
    """Google API configuration."""

    api_key: Optional[SecretStr] = Field(
        default=None, alias="GOOGLE_API_KEY", description="Google API key for authentication"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Logging
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="PAGEPILOT_AI_LOG_LEVEL",
    )

    # =====================================================================
    # Model Selection
    # =====================================================================
    provider: str = Field(
        default="openai",
        description="Model provider used for navigation decisions",
        alias="PAGEPILOT_AI_PROVIDER",
    )
    model: str = Field(
        default="gpt-4o",
        description="Model name used for navigation decisions",
        alias="PAGEPILOT_AI_MODEL",
    )
    temperature: float = Field(
        default=0.1,
        description="Sampling temperature for navigation decisions",
        alias="PAGEPILOT_AI_TEMPERATURE",
    )

    # =====================================================================
    # Execution Limits
    # =====================================================================
    max_steps: int = Field(
        default=100,
        ge=1,
        description="Maximum number of turns before a run is aborted",
        alias="PAGEPILOT_AI_MAX_STEPS",
    )
    max_failures: int = Field(
        default=3,
        ge=1,
        description="Maximum number of consecutive failed turns",
        alias="PAGEPILOT_AI_MAX_FAILURES",
    )
    planning_interval: int = Field(
        default=3,
        ge=0,
        description="Run the planner every N steps (0 disables planning)",
        alias="PAGEPILOT_AI_PLANNING_INTERVAL",
    )
    settle_delay: float = Field(
        default=1.0,
        ge=0,
        description="Seconds to wait after a page-changing action",
        alias="PAGEPILOT_AI_SETTLE_DELAY",
    )
    use_vision: bool = Field(
        default=True,
        description="Attach page screenshots to prompts when the model supports it",
        alias="PAGEPILOT_AI_USE_VISION",
    )

    # =====================================================================
    # Provider Credentials
    # =====================================================================
    openai_api_key: Optional[SecretStr] = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")
    anthropic_api_key: Optional[SecretStr] = Field(default=None, alias="ANTHROPIC_API_KEY")
    google_api_key: Optional[SecretStr] = Field(default=None, alias="GOOGLE_API_KEY")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def openai(self) -> OpenAIConfig:
        """Get OpenAI configuration from environment variables."""
        return OpenAIConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def anthropic(self) -> AnthropicConfig:
        """Get Anthropic configuration from environment variables."""
        return AnthropicConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def google(self) -> GoogleConfig:
        """Get Google configuration from environment variables."""
        return GoogleConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
