"""
Configuration adapters
"""
from .loader import ConfigLoader, default_config_path

__all__ = ["ConfigLoader", "default_config_path"]
