"""Configuration system for the bayesnlme package.

Provides YAML/JSON configuration loading and typed section schemas.
"""

from bayesnlme.config.manager import ConfigManager, load_config

__all__ = [
    "ConfigManager",
    "load_config",
]
