"""Serve the in-memory provider: ``python -m plugin_api``.

Environment:
    DNS_PLUGIN_HOST / DNS_PLUGIN_PORT      listen address (default 0.0.0.0:8888)
    DNS_PLUGIN_READ_TIMEOUT_S              request body deadline (default 5)
    DNS_PLUGIN_WRITE_TIMEOUT_S             response write deadline (default 10)
    DNS_PLUGIN_SEED_FILE                   optional JSON array of endpoints
    DNS_PLUGIN_DOMAIN_FILTER               comma separated domains to serve
    DNS_PLUGIN_EXCLUDE_DOMAINS             comma separated domains to hide
"""

import json
import logging
import os
import pathlib
from typing import List, Mapping, Optional

from dnsplug.adapters.provider_memory import InMemoryProvider
from dnsplug.adapters.wire import endpoints_from_wire
from dnsplug.domain.entities import DomainFilter, Endpoint
from dnsplug.utils.logging import configure_root
from plugin_api.server import ServerSettings, serve

log = logging.getLogger("plugin_api")


def load_seed(path: Optional[str]) -> List[Endpoint]:
    if not path:
        return []
    seed_path = pathlib.Path(path)
    data = json.loads(seed_path.read_text(encoding="utf-8"))
    return endpoints_from_wire(data, ctx=f"seed[{seed_path}]")


def build_provider(environ: Optional[Mapping[str, str]] = None) -> InMemoryProvider:
    env = os.environ if environ is None else environ
    domain_filter = DomainFilter.from_csv(
        env.get("DNS_PLUGIN_DOMAIN_FILTER"), env.get("DNS_PLUGIN_EXCLUDE_DOMAINS")
    )
    seed = load_seed(env.get("DNS_PLUGIN_SEED_FILE"))
    return InMemoryProvider(seed=seed, domain_filter=domain_filter)


def main() -> None:
    configure_root()
    settings = ServerSettings.from_env()
    provider = build_provider()
    log.info(
        "Serving %d record(s) on %s:%d", len(provider.records()), settings.host, settings.port
    )
    serve(provider, settings)


if __name__ == "__main__":
    main()
