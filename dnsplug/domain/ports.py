from __future__ import annotations

from typing import List, Protocol

from dnsplug.domain.entities import Changes, DomainFilter, Endpoint


# ---- Ports (Hexagonal boundaries) ----
class ProviderPort(Protocol):
    """Operations every DNS provider offers, local or behind the plugin API.

    Implementations served by ``plugin_api`` may be called from several
    request threads at once and must be safe for that.
    """

    def records(self) -> List[Endpoint]: ...
    def apply_changes(self, changes: Changes) -> None: ...
    def property_values_equal(self, name: str, previous: str, current: str) -> bool: ...
    def adjust_endpoints(self, endpoints: List[Endpoint]) -> List[Endpoint]: ...
    def get_domain_filter(self) -> DomainFilter: ...


class FailureRecorder(Protocol):
    """Sink for per-operation failure counts observed by the REST proxy."""

    def record_failure(self, operation: str) -> None: ...
