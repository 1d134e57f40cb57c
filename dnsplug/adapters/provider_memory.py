from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from dnsplug.domain.entities import ACCEPT_ALL, Changes, DomainFilter, Endpoint, EndpointKey
from dnsplug.domain.errors import LocalCapabilityError
from dnsplug.domain.ports import ProviderPort


@dataclass
class InMemoryProvider(ProviderPort):
    """Offline provider keeping records in a dict; safe for concurrent callers."""

    seed: Iterable[Endpoint] = ()
    domain_filter: DomainFilter = field(default=ACCEPT_ALL)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[EndpointKey, Endpoint] = {}
        for ep in self.seed:
            if ep.key in self._records:
                raise ValueError(f"duplicate endpoint {ep.key}")
            self._records[ep.key] = ep

    # ---------- ProviderPort ----------

    def records(self) -> List[Endpoint]:
        with self._lock:
            snapshot = list(self._records.values())
        return self.domain_filter.filter(snapshot)

    def apply_changes(self, changes: Changes) -> None:
        with self._lock:
            staged = dict(self._records)
            for ep in changes.create:
                if ep.key in staged:
                    raise LocalCapabilityError(
                        f"create: record {ep.key} already exists", operation="apply_changes"
                    )
                staged[ep.key] = ep
            for old, new in changes.updates:
                if old.key not in staged:
                    raise LocalCapabilityError(
                        f"update: record {old.key} does not exist", operation="apply_changes"
                    )
                if new.key != old.key:
                    del staged[old.key]
                staged[new.key] = new
            for ep in changes.delete:
                if ep.key not in staged:
                    raise LocalCapabilityError(
                        f"delete: record {ep.key} does not exist", operation="apply_changes"
                    )
                del staged[ep.key]
            self._records = staged

    def property_values_equal(self, name: str, previous: str, current: str) -> bool:
        return previous == current

    def adjust_endpoints(self, endpoints: List[Endpoint]) -> List[Endpoint]:
        adjusted = [ep.with_name(ep.dns_name.strip().lower().rstrip(".")) for ep in endpoints]
        return self.domain_filter.filter(adjusted)

    def get_domain_filter(self) -> DomainFilter:
        return self.domain_filter
