"""Declarative per-domain extraction and segmentation overrides.

Responsibilities:
- Map hostname substrings to extraction/segmentation overrides.
- Keep hostname matching in one policy object passed to extractor and segmenter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping
from urllib.parse import urlparse

from ..parsing import normalize_optional_string, parse_permissive_boolean


@dataclass(frozen=True, slots=True)
class DomainRule:
    """Overrides applied to sources whose hostname contains `host_fragment`.

    Attributes:
        host_fragment: Lower-case hostname substring to match.
        skip_extraction: Hand near-raw markup to the translator.
        single_chunk: Translate the whole document as one chunk.
    """

    host_fragment: str
    skip_extraction: bool = False
    single_chunk: bool = False


_NO_OVERRIDE = DomainRule(host_fragment="")

DEFAULT_DOMAIN_RULES: tuple[DomainRule, ...] = (
    DomainRule(host_fragment="reddit.com", skip_extraction=True),
    DomainRule(host_fragment="twitter.com", skip_extraction=True, single_chunk=True),
)


@dataclass(frozen=True, slots=True)
class DomainPolicy:
    """Ordered domain rule table; the first matching rule wins."""

    rules: tuple[DomainRule, ...] = field(default_factory=lambda: DEFAULT_DOMAIN_RULES)

    def rule_for(self, url: str) -> DomainRule:
        """Return the matching rule for a URL, or a no-op rule."""

        hostname = (urlparse(url).hostname or "").lower()
        if not hostname:
            return _NO_OVERRIDE
        for rule in self.rules:
            if rule.host_fragment and rule.host_fragment in hostname:
                return rule
        return _NO_OVERRIDE

    def with_overrides(self, overrides: Mapping[str, Mapping[str, object]]) -> DomainPolicy:
        """Return a policy where configured overrides take precedence over defaults."""

        configured = tuple(
            parse_domain_rule(host, values) for host, values in overrides.items()
        )
        configured_hosts = {rule.host_fragment for rule in configured}
        remaining = tuple(rule for rule in self.rules if rule.host_fragment not in configured_hosts)
        return DomainPolicy(rules=configured + remaining)


def parse_domain_rule(host: object, values: Mapping[str, object]) -> DomainRule:
    """Build a validated rule from a config mapping entry."""

    host_fragment = normalize_optional_string(host)
    if host_fragment is None:
        raise ValueError("Domain override host must be a non-empty string.")
    if not isinstance(values, Mapping):
        raise ValueError(f"Domain override for `{host_fragment}` must be a mapping/object.")
    unknown = sorted(set(values).difference({"skip_extraction", "single_chunk"}))
    if unknown:
        raise ValueError(
            f"Domain override for `{host_fragment}` includes unsupported key(s): "
            f"{', '.join(unknown)}."
        )

    flags: dict[str, bool] = {}
    for key in ("skip_extraction", "single_chunk"):
        if key not in values:
            flags[key] = False
            continue
        parsed = parse_permissive_boolean(values[key])
        if parsed is None:
            raise ValueError(
                f"Domain override `{host_fragment}.{key}` must be a boolean value."
            )
        flags[key] = parsed
    return DomainRule(host_fragment=host_fragment.lower(), **flags)
