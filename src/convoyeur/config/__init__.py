"""
Configuration module.
"""

from convoyeur.config.settings import (
    ConvoyeurConfig,
    get_settings,
    load_config,
)

__all__ = [
    "ConvoyeurConfig",
    "get_settings",
    "load_config",
]
