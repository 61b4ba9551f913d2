"""Configuration files (YAML) and helpers.

`ConfigManager` reads the packaged defaults from this folder and merges them
with user overrides; `PageTreeSettings` gives typed access to the editor
limits.
"""

from .manager import ConfigManager
from .settings import GatewaySettings, PageTreeSettings, load_settings

__all__ = [
    "ConfigManager",
    "GatewaySettings",
    "PageTreeSettings",
    "load_settings",
]
