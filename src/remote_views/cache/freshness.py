"""
Freshness policy: reconciles cache-control directives with configured defaults.
"""
import logging
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# directive-name or directive-name=value; a quoted value may contain commas
_DIRECTIVE_PATTERN = re.compile(r'([a-zA-Z\-_]+)\s*(?:=\s*(?:"([^"]*)"|\'([^\']*)\'|([^,\s]*)))?')


@dataclass(frozen=True)
class FreshnessDirectives:
    """Directives parsed from a response's Cache-Control header."""
    max_age: Optional[int] = None
    stale_while_revalidate: Optional[int] = None
    no_store: bool = False
    no_cache: bool = False
    must_revalidate: bool = False

    @property
    def forbids_caching(self) -> bool:
        """True when the response must be fetched again on the next call."""
        return self.no_store or self.no_cache or self.must_revalidate


@dataclass(frozen=True)
class Freshness:
    """Effective freshness lifetime for a single cache entry."""
    max_age: float
    stale_while_revalidate: float = 0

    def expiry(self, now: float) -> Tuple[float, float]:
        """
        Compute expiry timestamps for an entry created at ``now``.

        Args:
            now: Creation time on the cache clock

        Returns:
            Tuple of (expires_at, stale_until)
        """
        expires_at = now + self.max_age
        return expires_at, expires_at + self.stale_while_revalidate


def _parse_seconds(name: str, value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        logger.debug(f"Ignoring {name} directive without a value")
        return None
    try:
        seconds = int(value)
    except ValueError:
        logger.debug(f"Ignoring invalid {name} value: {value!r}")
        return None
    if seconds < 0:
        logger.debug(f"Ignoring negative {name} value: {seconds}")
        return None
    return seconds


def parse_cache_control(value: Optional[str]) -> Optional[FreshnessDirectives]:
    """
    Parse a Cache-Control header value.

    Unknown directives are ignored, as are malformed numeric values.

    Args:
        value: Raw header value, or None when the response carried no header

    Returns:
        Parsed directives, or None when there is no header at all
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(value)

    fields = {}
    for match in _DIRECTIVE_PATTERN.finditer(value):
        name = match.group(1).lower().replace("_", "-")
        argument = next((group for group in match.groups()[1:] if group is not None), None)
        if name == "no-store":
            fields["no_store"] = True
        elif name == "no-cache":
            fields["no_cache"] = True
        elif name == "must-revalidate":
            fields["must_revalidate"] = True
        elif name == "max-age":
            seconds = _parse_seconds(name, argument)
            if seconds is not None:
                fields["max_age"] = seconds
        elif name == "stale-while-revalidate":
            seconds = _parse_seconds(name, argument)
            if seconds is not None:
                fields["stale_while_revalidate"] = seconds

    return FreshnessDirectives(**fields)


def cache_control_from_headers(headers: Mapping[str, str]) -> Optional[FreshnessDirectives]:
    """Find the Cache-Control header (case-insensitive) and parse it."""
    for key, value in headers.items():
        if key.lower() == "cache-control":
            return parse_cache_control(value)
    return None


class FreshnessPolicy:
    """
    Translates cache-control directives plus instance defaults into a freshness decision.
    """

    def __init__(self, default_max_age: float = 60, default_stale_while_revalidate: float = 0):
        """
        Initialize the policy.

        Args:
            default_max_age: Seconds an entry stays fresh when no directive overrides it
            default_stale_while_revalidate: Seconds an expired entry stays usable
        """
        self.default_max_age = default_max_age
        self.default_stale_while_revalidate = default_stale_while_revalidate

    @property
    def defaults(self) -> Freshness:
        return Freshness(self.default_max_age, self.default_stale_while_revalidate)

    def resolve(self, directives: Optional[FreshnessDirectives] = None) -> Optional[Freshness]:
        """
        Resolve the effective freshness for a fetched entry.

        Args:
            directives: Directives from the response, or None

        Returns:
            Effective freshness, or None when the entry must not be cached
        """
        if directives is None:
            return self.defaults

        if directives.forbids_caching:
            return None

        max_age = directives.max_age
        if max_age is None:
            max_age = self.default_max_age
        stale_while_revalidate = directives.stale_while_revalidate
        if stale_while_revalidate is None:
            stale_while_revalidate = self.default_stale_while_revalidate
        return Freshness(max_age, stale_while_revalidate)
