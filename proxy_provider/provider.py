from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

import httpx

from helpers.unified_logger import get_core_logger

from .exceptions import ProxyConfigurationError
from .handlers import HttpProxyHandler, ProxyHandler, Socks4ProxyHandler, Socks5ProxyHandler
from .models import ProxyAddress, ProxyType
from .predicate import HostMatchPredicate
from .timeout import DEFAULT_CONNECT_TIMEOUT_MILLIS, normalize_connect_timeout

logger = get_core_logger("builder")

PasswordProvider = Callable[[str], str]
HeadersCallback = Callable[[httpx.Headers], None]
ShouldProxyPredicate = Callable[[Union[ProxyAddress, str]], bool]


def _always_proxy(address: Union[ProxyAddress, str]) -> bool:
    return True


@dataclass(frozen=True, eq=False)
class ProxyProvider:
    """
    Immutable description of how outbound connections reach a proxy.

    Instances are created through :meth:`builder` and shared read-only by
    every connection using the same proxy. Equality is structural, except
    for the password provider, headers callback and custom predicates,
    which compare by identity and are never invoked for comparison.

    Attributes:
        type: Proxy protocol.
        address: Proxy endpoint.
        username: Optional identity presented to the proxy.
        password_provider: Maps the username to a password at handshake time.
        http_headers_callback: Populates extra CONNECT headers (HTTP only).
        non_proxy_hosts: Wildcard pattern of hosts that bypass the proxy.
        should_proxy_predicate: Compiled or custom "should proxy" predicate.
        connect_timeout_millis: Normalised handshake timeout, 0 = unbounded.
    """

    type: ProxyType
    address: ProxyAddress
    username: Optional[str] = None
    password_provider: Optional[PasswordProvider] = None
    http_headers_callback: Optional[HeadersCallback] = None
    non_proxy_hosts: Optional[str] = None
    should_proxy_predicate: ShouldProxyPredicate = _always_proxy
    connect_timeout_millis: int = DEFAULT_CONNECT_TIMEOUT_MILLIS

    def __post_init__(self) -> None:
        if self.type is None:
            raise ProxyConfigurationError("Proxy type is required")
        if self.address is None:
            raise ProxyConfigurationError("Proxy address is required")
        object.__setattr__(self, "type", ProxyType.parse(self.type))
        object.__setattr__(self, "address", ProxyAddress.of(self.address))
        object.__setattr__(self, "connect_timeout_millis", normalize_connect_timeout(self.connect_timeout_millis))
        # A custom predicate replaces the pattern; otherwise the pattern is compiled once here.
        if self.should_proxy_predicate is _always_proxy and self.non_proxy_hosts:
            predicate = HostMatchPredicate.from_wildcarded_pattern(self.non_proxy_hosts)
            object.__setattr__(self, "should_proxy_predicate", predicate)

    @staticmethod
    def builder() -> "ProxyProviderBuilder":
        return ProxyProviderBuilder()

    def should_proxy(self, address: Optional[Union[ProxyAddress, str]]) -> bool:
        """Return ``True`` when a connection to ``address`` must use this proxy."""
        if address is None:
            return False
        return bool(self.should_proxy_predicate(address))

    def new_proxy_handler(self) -> ProxyHandler:
        """
        Create the handshake handler for a new connection.

        Credentials are resolved here, once per call, so password providers
        may rotate secrets between connections.
        """
        with_password = self.username is not None and self.password_provider is not None
        password = self.password_provider(self.username) if with_password else None

        if self.type is ProxyType.HTTP:
            headers = httpx.Headers()
            if self.http_headers_callback is not None:
                self.http_headers_callback(headers)
            return HttpProxyHandler(
                self.address,
                self.connect_timeout_millis,
                username=self.username if with_password else None,
                password=password,
                headers=headers,
            )
        if self.type is ProxyType.SOCKS4:
            return Socks4ProxyHandler(self.address, self.connect_timeout_millis, username=self.username)
        if self.type is ProxyType.SOCKS5:
            return Socks5ProxyHandler(
                self.address,
                self.connect_timeout_millis,
                username=self.username if with_password else None,
                password=password,
            )
        raise ProxyConfigurationError(f"Proxy type unsupported: {self.type}")

    def _key(self) -> Tuple:
        return (
            self.type,
            self.address,
            self.username,
            id(self.password_provider),
            id(self.http_headers_callback),
            self.non_proxy_hosts,
            self._predicate_key(),
            self.connect_timeout_millis,
        )

    def _predicate_key(self):
        if isinstance(self.should_proxy_predicate, HostMatchPredicate):
            return self.should_proxy_predicate
        return id(self.should_proxy_predicate)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, ProxyProvider):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        predicate = self.should_proxy_predicate
        if predicate is _always_proxy:
            predicate = None
        elif not isinstance(predicate, HostMatchPredicate):
            predicate = "<custom>"
        return f"ProxyProvider {{address={self.address}, non_proxy_hosts={predicate}, type={self.type.name}}}"

    def as_detailed_string(self) -> str:
        """Describe every setting; secrets are reported only as present/absent."""
        return (
            f"ProxyProvider {{type={self.type.name}, address={self.address}, "
            f"username={self.username}, password={'***' if self.password_provider else None}, "
            f"http_headers={'<callback>' if self.http_headers_callback else None}, "
            f"non_proxy_hosts={self.non_proxy_hosts!r}, "
            f"connect_timeout_millis={self.connect_timeout_millis}}}"
        )


class ProxyProviderBuilder:
    """
    Fluent builder for :class:`ProxyProvider`.

    Usage:
        provider = (
            ProxyProvider.builder()
            .type(ProxyType.SOCKS5)
            .address(("proxy.internal", 1080))
            .username("svc")
            .password(lambda user: vault.read(user))
            .non_proxy_hosts("localhost|*.internal")
            .build()
        )

    Not safe for concurrent use; build it up in one flow and discard it.
    """

    def __init__(self) -> None:
        self._type: Optional[ProxyType] = None
        self._address: Optional[ProxyAddress] = None
        self._host: Optional[str] = None
        self._port: Optional[int] = None
        self._username: Optional[str] = None
        self._password: Optional[PasswordProvider] = None
        self._http_headers: Optional[HeadersCallback] = None
        self._non_proxy_hosts: Optional[str] = None
        self._non_proxy_hosts_predicate: Optional[ShouldProxyPredicate] = None
        self._connect_timeout_millis: int = DEFAULT_CONNECT_TIMEOUT_MILLIS

    def type(self, proxy_type: Union[ProxyType, str]) -> "ProxyProviderBuilder":
        self._type = ProxyType.parse(proxy_type)
        return self

    def address(self, address: Union[ProxyAddress, Tuple[str, int]]) -> "ProxyProviderBuilder":
        self._address = ProxyAddress.of(address)
        return self

    def host(self, host: str) -> "ProxyProviderBuilder":
        """Proxy host, used only when no explicit address is set."""
        self._host = host
        return self

    def port(self, port: int) -> "ProxyProviderBuilder":
        """Proxy port for :meth:`host`; defaults to the protocol's usual port."""
        self._port = port
        return self

    def username(self, username: Optional[str]) -> "ProxyProviderBuilder":
        self._username = username
        return self

    def password(self, provider: Optional[PasswordProvider]) -> "ProxyProviderBuilder":
        """
        Lazy password source, called with the username at handshake time.

        Ignored unless a username is also configured.
        """
        if provider is not None and not callable(provider):
            raise ProxyConfigurationError("password must be a callable mapping username to password")
        self._password = provider
        return self

    def http_headers(self, callback: Optional[HeadersCallback]) -> "ProxyProviderBuilder":
        """
        Callback populating extra headers for HTTP CONNECT requests.

        The callback receives a fresh ``httpx.Headers`` mapping per handler
        and mutates it in place, e.g. ``headers["Authorization"] = "Bearer ..."``.
        """
        if callback is not None and not callable(callback):
            raise ProxyConfigurationError("http_headers must be a callable accepting httpx.Headers")
        self._http_headers = callback
        return self

    def non_proxy_hosts(self, pattern: Optional[str]) -> "ProxyProviderBuilder":
        self._non_proxy_hosts = pattern
        self._non_proxy_hosts_predicate = None
        return self

    def non_proxy_hosts_predicate(self, predicate: ShouldProxyPredicate) -> "ProxyProviderBuilder":
        """Custom predicate returning ``True`` for addresses that must be proxied."""
        if not callable(predicate):
            raise ProxyConfigurationError("non_proxy_hosts_predicate must be callable")
        self._non_proxy_hosts_predicate = predicate
        self._non_proxy_hosts = None
        return self

    def connect_timeout_millis(self, millis: int) -> "ProxyProviderBuilder":
        self._connect_timeout_millis = millis
        return self

    def build(self) -> ProxyProvider:
        if self._type is None:
            raise ProxyConfigurationError("Proxy type is required; call type() before build()")

        address = self._address
        if address is None:
            if self._host is None:
                raise ProxyConfigurationError("Proxy address is required; call address() or host() before build()")
            port = self._port if self._port is not None else self._type.default_port
            address = ProxyAddress.create_unresolved(self._host, port)

        provider = ProxyProvider(
            type=self._type,
            address=address,
            username=self._username,
            password_provider=self._password,
            http_headers_callback=self._http_headers,
            non_proxy_hosts=self._non_proxy_hosts,
            should_proxy_predicate=self._non_proxy_hosts_predicate or _always_proxy,
            connect_timeout_millis=self._connect_timeout_millis,
        )
        logger.debug(f"Built {provider.as_detailed_string()}")
        return provider
