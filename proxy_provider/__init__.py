"""
Proxy connection configuration.

This package models how outbound connections are routed through a SOCKS4,
SOCKS5 or HTTP CONNECT proxy: the immutable provider value and its builder,
the non-proxy hosts predicate, and the handshake timeout policy consumed by
the connection layer.
"""

from loguru import logger as _logger

from helpers.unified_logger import configure_logging

from .exceptions import ConfigurationError, PatternCompileError, ProxyConfigurationError, ProxyError
from .handlers import HttpProxyHandler, ProxyHandler, Socks4ProxyHandler, Socks5ProxyHandler
from .models import ProxyAddress, ProxyType
from .predicate import HostMatchPredicate, RegexShouldProxyPredicate
from .provider import ProxyProvider, ProxyProviderBuilder
from .timeout import DEFAULT_CONNECT_TIMEOUT_MILLIS, normalize_connect_timeout

# Silent until the application opts in with configure_logging().
_logger.disable(__name__)

__all__ = [
    "ConfigurationError",
    "DEFAULT_CONNECT_TIMEOUT_MILLIS",
    "HostMatchPredicate",
    "HttpProxyHandler",
    "PatternCompileError",
    "ProxyAddress",
    "ProxyConfigurationError",
    "ProxyError",
    "ProxyHandler",
    "ProxyProvider",
    "ProxyProviderBuilder",
    "ProxyType",
    "RegexShouldProxyPredicate",
    "Socks4ProxyHandler",
    "Socks5ProxyHandler",
    "configure_logging",
    "normalize_connect_timeout",
]
