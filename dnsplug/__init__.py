"""Client side of the DNS provider plugin protocol."""

from dnsplug.adapters.provider_rest import ProviderRestAdapter
from dnsplug.domain.entities import Changes, DomainFilter, Endpoint, ProviderSpecificProperty

__all__ = [
    "Changes",
    "DomainFilter",
    "Endpoint",
    "ProviderRestAdapter",
    "ProviderSpecificProperty",
]
