"""
Proxy configuration sources.

Three ways to obtain a :class:`ProxyProvider` without calling the builder
by hand:

- ``ProxySettings``: ``PROXY_*`` environment variables / ``.env`` file
- ``create_from_properties``: Java-style ``http.proxyHost`` / ``socksProxyHost`` properties
- ``create_from_environment``: conventional ``HTTPS_PROXY`` / ``ALL_PROXY`` / ``NO_PROXY`` URLs
"""

from __future__ import annotations

import os
from typing import List, Mapping, Optional
from urllib.parse import unquote, urlparse

from pydantic import PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from helpers.unified_logger import get_config_logger

from .exceptions import ProxyConfigurationError
from .models import ProxyType, default_port_for_scheme
from .provider import ProxyProvider
from .timeout import DEFAULT_CONNECT_TIMEOUT_MILLIS

logger = get_config_logger("sources")

HTTP_PROXY_HOST = "http.proxyHost"
HTTP_PROXY_PORT = "http.proxyPort"
HTTP_PROXY_USER = "http.proxyUser"
HTTP_PROXY_PASSWORD = "http.proxyPassword"
HTTPS_PROXY_HOST = "https.proxyHost"
HTTPS_PROXY_PORT = "https.proxyPort"
HTTPS_PROXY_USER = "https.proxyUser"
HTTPS_PROXY_PASSWORD = "https.proxyPassword"
HTTP_NON_PROXY_HOSTS = "http.nonProxyHosts"
SOCKS_PROXY_HOST = "socksProxyHost"
SOCKS_PROXY_PORT = "socksProxyPort"
SOCKS_VERSION = "socksProxyVersion"
SOCKS_USERNAME = "java.net.socks.username"
SOCKS_PASSWORD = "java.net.socks.password"

DEFAULT_NON_PROXY_HOSTS = "localhost|127.*|[::1]"
DEFAULT_SOCKS_PORT = 1080


class ProxySettings(BaseSettings):
    """Proxy settings loaded from ``PROXY_*`` environment variables."""

    type: ProxyType = ProxyType.HTTP
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    non_proxy_hosts: Optional[str] = None
    connect_timeout_millis: int = DEFAULT_CONNECT_TIMEOUT_MILLIS

    _password_provider = PrivateAttr(default=None)

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value):
        return ProxyType.parse(value)

    @field_validator("non_proxy_hosts", mode="before")
    @classmethod
    def _join_non_proxy_hosts(cls, value: List[str] | str | None) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, str):
            return value.strip() or None
        hosts = [host.strip() for host in value if host and host.strip()]
        return "|".join(hosts) or None

    def model_post_init(self, __context) -> None:
        if self.password is not None:
            password = self.password
            # One provider per settings object so repeated to_provider() calls compare equal.
            self._password_provider = lambda _username: password

    def to_provider(self) -> Optional[ProxyProvider]:
        """Build a provider, or return ``None`` when no proxy host is configured."""
        if not self.host:
            return None

        builder = (
            ProxyProvider.builder()
            .type(self.type)
            .host(self.host)
            .username(self.username)
            .password(self._password_provider)
            .non_proxy_hosts(self.non_proxy_hosts)
            .connect_timeout_millis(self.connect_timeout_millis)
        )
        if self.port is not None:
            builder.port(self.port)
        return builder.build()

    model_config = SettingsConfigDict(
        env_prefix="PROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def create_from_properties(properties: Mapping[str, str]) -> Optional[ProxyProvider]:
    """
    Build a provider from Java-style proxy properties.

    HTTPS settings win over HTTP, and HTTP over SOCKS. Returns ``None`` when
    none of the host properties are present.
    """
    if HTTP_PROXY_HOST in properties or HTTPS_PROXY_HOST in properties:
        return _create_http_proxy_from(properties)
    if SOCKS_PROXY_HOST in properties:
        return _create_socks_proxy_from(properties)
    return None


def _create_http_proxy_from(properties: Mapping[str, str]) -> ProxyProvider:
    if HTTPS_PROXY_HOST in properties:
        host_prop, port_prop = HTTPS_PROXY_HOST, HTTPS_PROXY_PORT
        user_prop, password_prop = HTTPS_PROXY_USER, HTTPS_PROXY_PASSWORD
        default_port = 443
    else:
        host_prop, port_prop = HTTP_PROXY_HOST, HTTP_PROXY_PORT
        user_prop, password_prop = HTTP_PROXY_USER, HTTP_PROXY_PASSWORD
        default_port = 80

    hostname = properties.get(host_prop)
    if not hostname:
        raise ProxyConfigurationError(f"Proxy host property '{host_prop}' is empty")
    port = _parse_port(properties, port_prop, default_port)

    non_proxy_hosts = properties.get(HTTP_NON_PROXY_HOSTS, DEFAULT_NON_PROXY_HOSTS).strip()

    builder = (
        ProxyProvider.builder()
        .type(ProxyType.HTTP)
        .host(hostname)
        .port(port)
        .non_proxy_hosts(non_proxy_hosts or None)
    )

    if user_prop in properties:
        if password_prop not in properties:
            raise ProxyConfigurationError(
                f"Proxy username is set via '{user_prop}', but '{password_prop}' is not set."
            )
        password = properties[password_prop]
        builder.username(properties[user_prop]).password(lambda _username: password)

    logger.debug(f"Loaded HTTP proxy from properties: {hostname}:{port}")
    return builder.build()


def _create_socks_proxy_from(properties: Mapping[str, str]) -> ProxyProvider:
    hostname = properties.get(SOCKS_PROXY_HOST)
    if not hostname:
        raise ProxyConfigurationError(f"Proxy host property '{SOCKS_PROXY_HOST}' is empty")

    version = properties.get(SOCKS_VERSION, "5")
    if version not in ("4", "5"):
        raise ProxyConfigurationError(f"Only SOCKS versions 4 and 5 are supported, got {version!r}")
    proxy_type = ProxyType.SOCKS5 if version == "5" else ProxyType.SOCKS4
    port = _parse_port(properties, SOCKS_PROXY_PORT, DEFAULT_SOCKS_PORT)

    builder = ProxyProvider.builder().type(proxy_type).host(hostname).port(port)
    if SOCKS_USERNAME in properties:
        builder.username(properties[SOCKS_USERNAME])
    if SOCKS_PASSWORD in properties:
        password = properties[SOCKS_PASSWORD]
        builder.password(lambda _username: password)

    logger.debug(f"Loaded {proxy_type.name} proxy from properties: {hostname}:{port}")
    return builder.build()


def _parse_port(properties: Mapping[str, str], prop: str, default: int) -> int:
    raw = properties.get(prop)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ProxyConfigurationError(f"Expected property '{prop}' to be a number but got {raw!r}") from None


_PROXY_ENV_VARS = ("HTTPS_PROXY", "https_proxy", "HTTP_PROXY", "http_proxy", "ALL_PROXY", "all_proxy")


def create_from_environment(environ: Optional[Mapping[str, str]] = None) -> Optional[ProxyProvider]:
    """
    Build a provider from ``HTTPS_PROXY`` / ``HTTP_PROXY`` / ``ALL_PROXY`` and ``NO_PROXY``.

    Credentials embedded in the proxy URL become the username and password.
    Returns ``None`` when no proxy variable is set.
    """
    env = os.environ if environ is None else environ

    proxy_url = next((env[key] for key in _PROXY_ENV_VARS if env.get(key)), None)
    if proxy_url is None:
        return None

    parsed = urlparse(proxy_url)
    if not parsed.scheme or not parsed.netloc:
        # Default to http when scheme omitted.
        parsed = urlparse(f"http://{proxy_url}")

    proxy_type = ProxyType.parse(parsed.scheme)
    if not parsed.hostname:
        raise ProxyConfigurationError(f"Proxy URL {proxy_url!r} is missing a host")
    try:
        port = parsed.port
    except ValueError:
        raise ProxyConfigurationError(f"Proxy URL {proxy_url!r} has an invalid port") from None
    if port is None:
        port = default_port_for_scheme(parsed.scheme) or proxy_type.default_port

    builder = (
        ProxyProvider.builder()
        .type(proxy_type)
        .host(parsed.hostname)
        .port(port)
        .non_proxy_hosts(_no_proxy_to_pattern(env.get("NO_PROXY") or env.get("no_proxy")))
    )
    if parsed.username:
        builder.username(unquote(parsed.username))
        if parsed.password is not None:
            password = unquote(parsed.password)
            builder.password(lambda _username: password)

    logger.debug(f"Loaded {proxy_type.name} proxy from environment: {parsed.hostname}:{port}")
    return builder.build()


def _no_proxy_to_pattern(value: Optional[str]) -> Optional[str]:
    if not value:
        return None

    entries = []
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if "/" in entry:
            logger.warning(f"Skipping unsupported NO_PROXY entry {entry!r}")
            continue
        if entry.startswith("."):
            entries.append(f"*{entry}")
        elif entry.startswith("*"):
            entries.append(entry)
        else:
            # Bare domains cover their subdomains too.
            entries.extend([entry, f"*.{entry}"])
    return "|".join(entries) or None
