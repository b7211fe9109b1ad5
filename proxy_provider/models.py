from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from .exceptions import ProxyConfigurationError

_DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
    "socks5": 1080,
    "socks4": 1080,
}

_SCHEME_ALIASES = {
    "https": "http",
    "socks4a": "socks4",
    "socks5h": "socks5",
}


def default_port_for_scheme(scheme: str) -> Optional[int]:
    key = scheme.lower()
    return _DEFAULT_PORTS.get(key) or _DEFAULT_PORTS.get(_SCHEME_ALIASES.get(key, key))


class ProxyType(str, Enum):
    """Proxy protocols a provider can route through."""

    HTTP = "http"
    SOCKS4 = "socks4"
    SOCKS5 = "socks5"

    @classmethod
    def parse(cls, value: Union["ProxyType", str]) -> "ProxyType":
        """Accept an enum member, its name, or a proxy URL scheme (case-insensitive)."""
        if isinstance(value, ProxyType):
            return value
        if not isinstance(value, str):
            raise ProxyConfigurationError(f"Unsupported proxy type: {value!r}")

        key = value.strip().lower()
        key = _SCHEME_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ProxyConfigurationError(f"Unsupported proxy type: {value!r}") from None

    @property
    def default_port(self) -> int:
        return _DEFAULT_PORTS[self.value]


@dataclass(frozen=True, slots=True, eq=False)
class ProxyAddress:
    """
    Proxy endpoint as host and port, optionally with a known IP address.

    Attributes:
        host: Hostname or IP literal as supplied by the caller.
        port: TCP port (0-65535).
        ip: Resolved IP address, ``None`` while the host is unresolved.
    """

    host: str
    port: int
    ip: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.host, str) or not self.host.strip():
            raise ProxyConfigurationError("Proxy host cannot be empty")
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 <= self.port <= 65535:
            raise ProxyConfigurationError(f"Invalid proxy port: {self.port!r}")

    @classmethod
    def create_unresolved(cls, host: str, port: int) -> "ProxyAddress":
        return cls(host, port)

    @classmethod
    def create_resolved(cls, host: str, port: int, ip: str) -> "ProxyAddress":
        """Record an address whose IP is already known. No lookup is performed."""
        if not ip:
            raise ProxyConfigurationError("Resolved proxy address requires an IP")
        return cls(host, port, ip)

    @classmethod
    def of(cls, value: Union["ProxyAddress", Tuple[str, int]]) -> "ProxyAddress":
        if isinstance(value, ProxyAddress):
            return value
        try:
            host, port = value
        except (TypeError, ValueError):
            raise ProxyConfigurationError(
                f"Proxy address must be a ProxyAddress or (host, port) pair, got {value!r}"
            ) from None
        return cls.create_unresolved(host, port)

    @property
    def host_string(self) -> str:
        return self.host

    @property
    def is_unresolved(self) -> bool:
        return self.ip is None

    def _key(self) -> tuple:
        # Resolved addresses compare by IP, unresolved ones by hostname.
        if self.ip is not None:
            return (True, self.ip, self.port)
        return (False, self.host.lower(), self.port)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProxyAddress):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        host = f"[{self.host}]" if ":" in self.host and not self.host.startswith("[") else self.host
        if self.ip is None:
            return f"{host}/<unresolved>:{self.port}"
        return f"{host}/{self.ip}:{self.port}"

    def netloc(self) -> str:
        """``host:port`` suitable for embedding in a proxy URL."""
        host = self.host
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"{host}:{self.port}"
