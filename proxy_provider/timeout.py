"""Handshake timeout policy shared by the provider and its handlers."""

from __future__ import annotations

from typing import Optional

from .exceptions import ProxyConfigurationError

DEFAULT_CONNECT_TIMEOUT_MILLIS = 10000


def normalize_connect_timeout(value: int) -> int:
    """
    Normalise a requested handshake timeout.

    Non-positive values mean "no explicit timeout" and collapse to ``0``;
    anything else passes through unchanged.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProxyConfigurationError(
            f"connect_timeout_millis must be an integer, got {type(value).__name__}"
        )
    return value if value > 0 else 0


def to_seconds(millis: int) -> Optional[float]:
    """Convert a normalised timeout to seconds; ``0`` maps to ``None`` (unbounded)."""
    if millis <= 0:
        return None
    return millis / 1000
