"""Configuration management and collaborator injection."""

from .container import Container
from .settings import CoordinationConfig, ObservabilityConfig, Settings, get_settings

__all__ = ["Settings", "CoordinationConfig", "ObservabilityConfig", "get_settings", "Container"]
