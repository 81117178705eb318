"""
deploymeta configuration.

Provides:
- Pydantic-based settings (environment variables, .env files)
- The Factory connection context handed to remote adapters
"""

from deploymeta.config.context import FactoryContext
from deploymeta.config.settings import DEFAULT_BASE_URL, Settings, get_settings

__all__ = [
    "DEFAULT_BASE_URL",
    "FactoryContext",
    "Settings",
    "get_settings",
]
