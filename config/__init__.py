"""Configuration package for the interview session services."""
from .llm import AppConfig, LlmRoute, load_config, load_routes, resolve_routes
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_config",
    "load_routes",
    "resolve_routes",
    "Settings",
    "settings",
]
