"""
Configuration: settings, logging and domain constants.
"""

from pos_shared.config.settings import settings, get_settings
from pos_shared.config.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
