"""Configuration for honorer applications."""

from .loader import ConfigurationLoader
from .manager import ConfigurationManager, load_settings
from .settings import HonorerSettings

__all__ = [
    "HonorerSettings",
    "ConfigurationManager",
    "ConfigurationLoader",
    "load_settings",
]
