"""Custom exceptions for proxy configuration."""


class ProxyError(Exception):
    """Base class for proxy-related errors."""


class ProxyConfigurationError(ProxyError):
    """Raised when proxy configuration is invalid or incomplete."""


class PatternCompileError(ProxyConfigurationError):
    """Raised when a non-proxy hosts wildcard pattern cannot be compiled."""


ConfigurationError = ProxyConfigurationError
