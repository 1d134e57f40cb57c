"""Domain value objects carried between the orchestrator and provider plugins."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Tuple


EndpointKey = Tuple[str, str, str]


@dataclass(frozen=True)
class ProviderSpecificProperty:
    """Opaque provider option attached to an endpoint (e.g. alias flags)."""

    name: str
    value: str = ""


@dataclass(frozen=True)
class Endpoint:
    """One DNS record description.

    The plugin bridge never interprets these fields; it only moves them across
    the wire. Sequences are stored as tuples and ``labels`` is copied so a
    constructed endpoint cannot be changed through the caller's references.
    """

    dns_name: str
    targets: Tuple[str, ...] = ()
    record_type: str = ""
    set_identifier: str = ""
    record_ttl: int = 0
    """TTL in seconds; ``0`` means not configured."""
    labels: Mapping[str, str] = field(default_factory=dict)
    provider_specific: Tuple[ProviderSpecificProperty, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.dns_name, str):
            raise TypeError("Endpoint.dns_name must be a string.")
        if isinstance(self.targets, str):
            raise TypeError("Endpoint.targets must be a sequence of strings, not a string.")
        object.__setattr__(self, "targets", tuple(str(t) for t in self.targets))
        object.__setattr__(self, "labels", dict(self.labels or {}))
        object.__setattr__(self, "provider_specific", tuple(self.provider_specific))
        if int(self.record_ttl) < 0:
            raise ValueError("Endpoint.record_ttl must not be negative.")
        object.__setattr__(self, "record_ttl", int(self.record_ttl))

    @property
    def key(self) -> EndpointKey:
        """Identity of the record within one snapshot."""
        return (self.dns_name, self.record_type, self.set_identifier)

    def with_name(self, dns_name: str) -> "Endpoint":
        return Endpoint(
            dns_name=dns_name,
            targets=self.targets,
            record_type=self.record_type,
            set_identifier=self.set_identifier,
            record_ttl=self.record_ttl,
            labels=self.labels,
            provider_specific=self.provider_specific,
        )


@dataclass(frozen=True)
class Changes:
    """Record diff produced by the planner and consumed by ``apply_changes``.

    ``update_old[i]`` is the pre-image of ``update_new[i]``; both sequences must
    therefore have the same length.
    """

    create: Tuple[Endpoint, ...] = ()
    update_old: Tuple[Endpoint, ...] = ()
    update_new: Tuple[Endpoint, ...] = ()
    delete: Tuple[Endpoint, ...] = ()

    def __post_init__(self) -> None:
        for name in ("create", "update_old", "update_new", "delete"):
            object.__setattr__(self, name, tuple(getattr(self, name) or ()))
        if len(self.update_old) != len(self.update_new):
            raise ValueError(
                "Changes.update_old and Changes.update_new must have the same length "
                f"(got {len(self.update_old)} and {len(self.update_new)})."
            )

    @property
    def updates(self) -> List[Tuple[Endpoint, Endpoint]]:
        return list(zip(self.update_old, self.update_new))

    def is_empty(self) -> bool:
        return not (self.create or self.update_old or self.delete)


def _normalize_domain(value: str) -> str:
    return str(value or "").strip().lower().rstrip(".")


def _matches_any(domain: str, candidates: Tuple[str, ...]) -> bool:
    for candidate in candidates:
        if not candidate:
            continue
        if candidate.startswith("."):
            # ".example.com" matches subdomains only
            if domain.endswith(candidate):
                return True
            continue
        if domain == candidate or domain.endswith("." + candidate):
            return True
    return False


@dataclass(frozen=True)
class DomainFilter:
    """Suffix-based domain filter; an empty filter accepts every domain."""

    filters: Tuple[str, ...] = ()
    exclusions: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "filters", tuple(f for f in (_normalize_domain(x) for x in self.filters) if f)
        )
        object.__setattr__(
            self, "exclusions", tuple(f for f in (_normalize_domain(x) for x in self.exclusions) if f)
        )

    @classmethod
    def from_csv(cls, raw: Optional[str], exclusions: Optional[str] = None) -> "DomainFilter":
        def split(text: Optional[str]) -> Tuple[str, ...]:
            return tuple(part.strip() for part in (text or "").split(",") if part.strip())

        return cls(filters=split(raw), exclusions=split(exclusions))

    @property
    def is_configured(self) -> bool:
        return bool(self.filters or self.exclusions)

    def match(self, domain: str) -> bool:
        name = _normalize_domain(domain)
        if self.filters and not _matches_any(name, self.filters):
            return False
        return not _matches_any(name, self.exclusions)

    def filter(self, endpoints: Iterable[Endpoint]) -> List[Endpoint]:
        return [ep for ep in endpoints if self.match(ep.dns_name)]


ACCEPT_ALL = DomainFilter()
"""Permissive filter returned when filtering is owned by the remote side."""
