"""
Handshake handler descriptions produced by ``ProxyProvider.new_proxy_handler``.

A handler captures everything a connection layer needs to perform the proxy
handshake: the proxy endpoint, credentials resolved at handler creation
time, extra CONNECT headers and the normalised timeout. Handlers never open
sockets themselves; ``to_pysocks_kwargs`` and ``to_httpx_proxy`` translate
them for the client libraries that do.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional
from urllib.parse import quote

import httpx
import socks

from .exceptions import ProxyConfigurationError
from .models import ProxyAddress, ProxyType
from .timeout import to_seconds


@dataclass(frozen=True)
class ProxyHandler:
    proxy_type: ClassVar[ProxyType]
    socks_type: ClassVar[int]

    proxy_address: ProxyAddress
    connect_timeout_millis: int
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    @property
    def protocol(self) -> str:
        return self.proxy_type.value

    @property
    def connect_timeout(self) -> Optional[float]:
        """Handshake timeout in seconds, ``None`` when unbounded."""
        return to_seconds(self.connect_timeout_millis)

    @property
    def has_credentials(self) -> bool:
        return self.username is not None and self.password is not None

    def proxy_url(self, *, mask_password: bool = False) -> str:
        """
        Build a proxy URL with credentials embedded.

        Args:
            mask_password: Replace the password with "***" for logging.
        """
        netloc = self.proxy_address.netloc()
        if self.username:
            auth_segment = quote(self.username, safe="")
            if self.password is not None:
                password = "***" if mask_password else quote(self.password, safe="")
                auth_segment = f"{auth_segment}:{password}"
            netloc = f"{auth_segment}@{netloc}"
        return f"{self.protocol}://{netloc}"

    def to_pysocks_kwargs(self, *, rdns: bool = True) -> Dict[str, Any]:
        """Keyword arguments for ``socks.socksocket.set_proxy``."""
        return {
            "proxy_type": self.socks_type,
            "addr": self.proxy_address.ip or self.proxy_address.host,
            "port": self.proxy_address.port,
            "rdns": rdns,
            "username": self.username,
            "password": self.password,
        }

    def to_httpx_proxy(self) -> httpx.Proxy:
        raise ProxyConfigurationError(f"httpx does not support {self.protocol} proxies")

    def _httpx_auth(self) -> Optional[tuple]:
        if self.has_credentials:
            return (self.username, self.password)
        return None


@dataclass(frozen=True)
class HttpProxyHandler(ProxyHandler):
    proxy_type: ClassVar[ProxyType] = ProxyType.HTTP
    socks_type: ClassVar[int] = socks.HTTP

    headers: httpx.Headers = field(default_factory=httpx.Headers)

    def __hash__(self) -> int:
        # httpx.Headers is unhashable; hash its items the way Headers.__eq__ compares them.
        header_items = tuple(sorted((key.lower(), value) for key, value in self.headers.multi_items()))
        return hash((self.proxy_address, self.connect_timeout_millis, self.username, self.password, header_items))

    def to_httpx_proxy(self) -> httpx.Proxy:
        return httpx.Proxy(
            f"http://{self.proxy_address.netloc()}",
            auth=self._httpx_auth(),
            headers=self.headers,
        )


@dataclass(frozen=True)
class Socks4ProxyHandler(ProxyHandler):
    """SOCKS4 carries a user id only; ``password`` is always ``None``."""

    proxy_type: ClassVar[ProxyType] = ProxyType.SOCKS4
    socks_type: ClassVar[int] = socks.SOCKS4

    def __post_init__(self) -> None:
        if self.password is not None:
            raise ProxyConfigurationError("SOCKS4 proxies do not accept a password")


@dataclass(frozen=True)
class Socks5ProxyHandler(ProxyHandler):
    proxy_type: ClassVar[ProxyType] = ProxyType.SOCKS5
    socks_type: ClassVar[int] = socks.SOCKS5

    def to_httpx_proxy(self) -> httpx.Proxy:
        return httpx.Proxy(f"socks5://{self.proxy_address.netloc()}", auth=self._httpx_auth())
