from __future__ import annotations

import re
from typing import Optional, Pattern, Union

from helpers.unified_logger import get_core_logger

from .exceptions import PatternCompileError
from .models import ProxyAddress

logger = get_core_logger("predicate")

_ENTRY_SEPARATORS = re.compile(r"[|,]")
_VALID_ENTRY = re.compile(r"^[A-Za-z0-9.\-_*:\[\]%]+$")
# Regex that can never match; used when no non-proxy hosts are configured.
_MATCH_NOTHING = "(?!)"


class HostMatchPredicate:
    """
    Decides whether a destination should go through the proxy.

    Built from a wildcarded non-proxy hosts pattern such as
    ``"localhost|127.*|*.internal.example.com"``. ``test`` returns ``False``
    for hosts matching the pattern (connect directly) and ``True`` for
    everything else (route through the proxy).
    """

    __slots__ = ("_pattern", "_source")

    def __init__(self, pattern: Pattern[str], source: Optional[str] = None) -> None:
        self._pattern = pattern
        self._source = source

    @classmethod
    def from_wildcarded_pattern(cls, pattern: Optional[str]) -> "HostMatchPredicate":
        """
        Compile a ``|`` or ``,`` separated list of host patterns.

        ``*`` matches any sequence of characters; everything else is matched
        literally and case-insensitively against the whole host.

        Raises:
            PatternCompileError: If an entry contains characters that cannot
                appear in a host name or IP literal.
        """
        if pattern is not None and not isinstance(pattern, str):
            raise PatternCompileError(f"Non-proxy hosts pattern must be a string, got {pattern!r}")

        entries = [entry.strip() for entry in _ENTRY_SEPARATORS.split(pattern or "")]
        entries = [entry for entry in entries if entry]

        for entry in entries:
            if not _VALID_ENTRY.match(entry):
                raise PatternCompileError(f"Invalid non-proxy host entry {entry!r} in {pattern!r}")

        if entries:
            regex = "|".join(_wildcard_to_regex(_strip_brackets(entry)) for entry in entries)
        else:
            regex = _MATCH_NOTHING

        try:
            compiled = re.compile(regex, re.IGNORECASE)
        except re.error as exc:
            raise PatternCompileError(f"Cannot compile non-proxy hosts pattern {pattern!r}: {exc}") from exc

        logger.debug(f"Compiled non-proxy hosts {pattern!r} -> {regex}")
        return cls(compiled, pattern)

    @property
    def pattern(self) -> str:
        """Regex source the predicate matches with."""
        return self._pattern.pattern

    @property
    def source(self) -> Optional[str]:
        """Wildcard pattern the predicate was compiled from."""
        return self._source

    def matches(self, host: str) -> bool:
        return self._pattern.fullmatch(_strip_brackets(host)) is not None

    def test(self, address: Union[ProxyAddress, str]) -> bool:
        """
        Return ``True`` to proxy ``address``, ``False`` to connect directly.

        Values that are neither a host string nor a ``ProxyAddress`` carry no
        host to route by and are never proxied.
        """
        if isinstance(address, ProxyAddress):
            if self.matches(address.host_string):
                return False
            if address.ip is not None and self.matches(address.ip):
                return False
            return True
        if not isinstance(address, str):
            return False
        return not self.matches(address)

    __call__ = test

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HostMatchPredicate):
            return NotImplemented
        return self.pattern == other.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    def __str__(self) -> str:
        return self.pattern

    def __repr__(self) -> str:
        return f"HostMatchPredicate({self._source!r})"


RegexShouldProxyPredicate = HostMatchPredicate


def _strip_brackets(host: str) -> str:
    if host.startswith("[") and host.endswith("]"):
        return host[1:-1]
    return host


def _wildcard_to_regex(entry: str) -> str:
    return ".*".join(re.escape(part) for part in entry.split("*"))
