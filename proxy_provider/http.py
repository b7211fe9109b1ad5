from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from .provider import ProxyProvider


def create_httpx_client(
    provider: Optional[ProxyProvider],
    *,
    target_host: Optional[str] = None,
    timeout: Optional[httpx.Timeout] = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """
    Return an AsyncClient configured to route requests through the proxy.

    Args:
        provider: Proxy configuration. When ``None``, a standard client is returned.
        target_host: Host the client will talk to. When it matches the
            provider's non-proxy hosts, the client connects directly.
        timeout: Optional explicit timeout. If omitted, the provider's
            handshake timeout bounds connection setup.
        **kwargs: Additional parameters forwarded to ``httpx.AsyncClient``.
    """
    client_kwargs: Dict[str, Any] = dict(kwargs)

    if timeout is not None:
        client_kwargs["timeout"] = timeout

    if provider is None or (target_host is not None and not provider.should_proxy(target_host)):
        return httpx.AsyncClient(**client_kwargs)

    handler = provider.new_proxy_handler()
    client_kwargs.setdefault("proxy", handler.to_httpx_proxy())
    if timeout is None:
        client_kwargs.setdefault("timeout", httpx.Timeout(5.0, connect=handler.connect_timeout))

    return httpx.AsyncClient(**client_kwargs)
