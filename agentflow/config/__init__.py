"""Configuration module."""

from agentflow.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
