"""
PySH Core Module

Core shell components:
- Configuration Loader
- Command Registry
"""

from .config_loader import ConfigLoader, Config, ConfigError, get_config
from .registry import CommandRegistry, CommandEntry, STANDARD_UTILITIES

__all__ = [
    # Config
    'ConfigLoader',
    'Config',
    'ConfigError',
    'get_config',
    # Registry
    'CommandRegistry',
    'CommandEntry',
    'STANDARD_UTILITIES',
]
