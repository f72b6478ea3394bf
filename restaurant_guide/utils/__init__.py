"""
Configuration and logging helpers.
"""
from .config import Settings, get_settings
from .logger import app_logger, setup_logger

__all__ = [
    'Settings',
    'get_settings',
    'app_logger',
    'setup_logger'
]
