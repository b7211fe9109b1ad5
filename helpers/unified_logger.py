"""
Unified logging for proxy-provider

Provides consistent, colored logging across the configuration layer:
- Provider builder
- Non-proxy host predicate compilation
- Settings / properties / environment loading

Based on loguru with component-specific context. The library never touches
the application's loguru handlers: ``proxy_provider`` records stay disabled
until the application calls :func:`configure_logging`.
"""

import os
import sys
from typing import Any, Dict, Optional

from loguru import logger as _logger

LIBRARY_NAME = "proxy_provider"

_console_handler_id: Optional[int] = None


class UnifiedLogger:
    """
    Unified logger that provides consistent formatting across all components.

    Features:
    - Source location (module:function:line) of the calling code
    - Component-specific context (builder, predicate, config, ...)
    - Structured logging support through keyword arguments
    """

    def __init__(
        self,
        component_type: str,  # "core", "config"
        component_name: str,  # "builder", "predicate", "sources", etc.
        context: Optional[Dict[str, Any]] = None,
    ):
        self.component_type = component_type.upper()
        self.component_name = component_name.upper()
        self.context = context or {}

        self.component_id = f"{self.component_type}:{self.component_name}"
        if self.context:
            context_str = ":".join([f"{k}={v}" for k, v in self.context.items()])
            self.component_id = f"{self.component_id}:{context_str}"

        # Bind component context to all log records
        self._logger = _logger.bind(component_id=self.component_id)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self._logger.opt(depth=1).debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self._logger.opt(depth=1).info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self._logger.opt(depth=1).warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message."""
        self._logger.opt(depth=1).error(message, **kwargs)


def configure_logging(level: Optional[str] = None, console: bool = True) -> None:
    """
    Turn on proxy-provider log records.

    Args:
        level: Minimum level for the console sink (defaults to env LOG_LEVEL or INFO)
        console: Also add the colored component console sink. With ``False``
            records only reach the handlers the application installed itself.

    Safe to call repeatedly; the console sink is added once.
    """
    global _console_handler_id

    _logger.enable(LIBRARY_NAME)
    if not console or _console_handler_id is not None:
        return

    if level is None:
        level = os.getenv('LOG_LEVEL', 'INFO')

    def format_record(record):
        module_name = record.get("module") or record.get("name", "")
        function_name = record.get("function", "")
        line_number = record.get("line", 0)

        max_width = 40
        source_location = f"{module_name}:{function_name}:{line_number}"
        if len(source_location) > max_width:
            source_location = f"...{source_location[-(max_width - 3):]}"

        record["extra"]["short_name"] = f"{source_location:>{max_width}}"
        return True

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[short_name]}</cyan> | "
        "<level>{message}</level>"
    )

    _console_handler_id = _logger.add(
        sys.stdout,
        format=console_format,
        level=level.upper(),
        colorize=True,
        filter=lambda record: record["extra"].get("component_id") and format_record(record),
        backtrace=True,
        diagnose=False
    )


def get_logger(
    component_type: str,
    component_name: str,
    context: Optional[Dict[str, Any]] = None,
) -> UnifiedLogger:
    """
    Factory function to create unified loggers.

    Examples:
        logger = get_logger("core", "builder")
        logger = get_logger("config", "sources", {"source": "env"})
    """
    return UnifiedLogger(
        component_type=component_type,
        component_name=component_name,
        context=context,
    )


def get_core_logger(module_name: str, **context) -> UnifiedLogger:
    """Get logger for core configuration objects."""
    return get_logger("core", module_name, context)


def get_config_logger(source_name: str, **context) -> UnifiedLogger:
    """Get logger for configuration loaders."""
    return get_logger("config", source_name, context)
