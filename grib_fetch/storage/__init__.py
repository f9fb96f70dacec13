"""
Storage Layer.

This package manages persistent data, namely the JSON configuration file.
"""

from .config_manager import ConfigManager

__all__ = ["ConfigManager"]
