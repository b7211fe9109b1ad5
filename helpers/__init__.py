"""
Helper modules for proxy-provider.
"""

from .unified_logger import UnifiedLogger, configure_logging, get_logger, get_core_logger, get_config_logger

__all__ = [
    'UnifiedLogger',
    'configure_logging',
    'get_logger',
    'get_core_logger',
    'get_config_logger',
]
