"""Domain package exports for value objects and ports."""

from .entities import (
    ACCEPT_ALL,
    Changes,
    DomainFilter,
    Endpoint,
    EndpointKey,
    ProviderSpecificProperty,
)
from .errors import LocalCapabilityError
from .ports import FailureRecorder, ProviderPort

__all__ = [
    "ACCEPT_ALL",
    "Changes",
    "DomainFilter",
    "Endpoint",
    "EndpointKey",
    "FailureRecorder",
    "LocalCapabilityError",
    "ProviderPort",
    "ProviderSpecificProperty",
]
