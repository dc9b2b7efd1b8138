"""Configuration package for the compliance interview service."""
from .llm import AppConfig, LlmRoute, default_config, default_route, load_config
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "default_config",
    "default_route",
    "load_config",
    "Settings",
    "settings",
]
