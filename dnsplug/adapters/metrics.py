"""Prometheus failure counters for the provider REST proxy.

Counters are registered on the registry handed to the recorder, so several
proxies (and tests) can each own an isolated registry.
"""

from __future__ import annotations

from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Counter

from dnsplug.domain.contract import (
    OP_ADJUST_ENDPOINTS,
    OP_APPLY_CHANGES,
    OP_PROPERTY_VALUES_EQUAL,
    OP_RECORDS,
)

METRIC_NAMESPACE = "dns_plugin"
METRIC_SUBSYSTEM = "provider"

_COUNTER_SPECS = {
    OP_RECORDS: ("records_errors", "Errors with Records method"),
    OP_APPLY_CHANGES: ("applychanges_errors", "Errors with ApplyChanges method"),
    OP_PROPERTY_VALUES_EQUAL: (
        "propertyvaluesequal_errors",
        "Errors with PropertyValuesEqual method; the local equality default was used.",
    ),
    OP_ADJUST_ENDPOINTS: (
        "adjustendpoints_errors",
        "Errors with AdjustEndpoints method; the endpoints were passed through unchanged.",
    ),
}


class PrometheusFailureRecorder:
    """One ``Counter`` per proxy operation."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self._counters: Dict[str, Counter] = {
            op: Counter(
                name,
                documentation,
                namespace=METRIC_NAMESPACE,
                subsystem=METRIC_SUBSYSTEM,
                registry=self.registry,
            )
            for op, (name, documentation) in _COUNTER_SPECS.items()
        }

    def record_failure(self, operation: str) -> None:
        try:
            counter = self._counters[operation]
        except KeyError as exc:
            raise ValueError(f"Unknown provider operation '{operation}'") from exc
        counter.inc()

    def count(self, operation: str) -> float:
        """Current counter value for ``operation``."""
        name, _ = _COUNTER_SPECS[operation]
        value = self.registry.get_sample_value(
            f"{METRIC_NAMESPACE}_{METRIC_SUBSYSTEM}_{name}_total"
        )
        return value or 0.0


__all__ = ["METRIC_NAMESPACE", "METRIC_SUBSYSTEM", "PrometheusFailureRecorder"]
