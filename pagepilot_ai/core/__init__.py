"""
Core utilities and configuration for PagePilot-AI.

This package provides the settings model and logging configuration shared by
the agent core.
"""

from pagepilot_ai.core.config import Settings, settings
from pagepilot_ai.core.logging_config import get_logger, setup_logging

__all__ = ["Settings", "settings", "get_logger", "setup_logging"]
