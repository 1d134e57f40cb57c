"""uvicorn runner for the plugin API."""

import os
import threading
import time
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

import uvicorn

from dnsplug.domain.contract import DEFAULT_PORT
from dnsplug.domain.ports import ProviderPort
from plugin_api.app import create_app
from plugin_api.timeouts import DEFAULT_READ_TIMEOUT_S, DEFAULT_WRITE_TIMEOUT_S


@dataclass
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    read_timeout_s: float = DEFAULT_READ_TIMEOUT_S
    write_timeout_s: float = DEFAULT_WRITE_TIMEOUT_S
    log_level: str = "info"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        """Read ``DNS_PLUGIN_*`` variables; unset or blank values keep defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()

        def pick(name: str, fallback):
            raw = (env.get(name) or "").strip()
            if not raw:
                return fallback
            try:
                return type(fallback)(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for {name}: {raw!r}") from exc

        return cls(
            host=pick("DNS_PLUGIN_HOST", defaults.host),
            port=pick("DNS_PLUGIN_PORT", defaults.port),
            read_timeout_s=pick("DNS_PLUGIN_READ_TIMEOUT_S", defaults.read_timeout_s),
            write_timeout_s=pick("DNS_PLUGIN_WRITE_TIMEOUT_S", defaults.write_timeout_s),
            log_level=pick("DNS_PLUGIN_UVICORN_LOG_LEVEL", defaults.log_level).lower(),
        )


def build_server(provider: ProviderPort, settings: Optional[ServerSettings] = None) -> uvicorn.Server:
    cfg = settings or ServerSettings()
    app = create_app(
        provider,
        read_timeout_s=cfg.read_timeout_s,
        write_timeout_s=cfg.write_timeout_s,
    )
    config = uvicorn.Config(
        app,
        host=cfg.host,
        port=cfg.port,
        timeout_keep_alive=max(1, int(cfg.read_timeout_s)),
        log_level=cfg.log_level,
        log_config=None,
    )
    return uvicorn.Server(config)


def serve(provider: ProviderPort, settings: Optional[ServerSettings] = None) -> None:
    """Run the plugin API in the foreground until interrupted."""
    build_server(provider, settings).run()


def start_in_thread(
    provider: ProviderPort,
    settings: Optional[ServerSettings] = None,
    *,
    startup_timeout_s: float = 10.0,
) -> Tuple[uvicorn.Server, threading.Thread]:
    """Start the server on a daemon thread and return once it accepts connections."""
    server = build_server(provider, settings)
    thread = threading.Thread(target=server.run, name="plugin-api", daemon=True)
    thread.start()
    deadline = time.monotonic() + startup_timeout_s
    while not server.started:
        if not thread.is_alive():
            raise RuntimeError("plugin API server exited during startup")
        if time.monotonic() > deadline:
            server.should_exit = True
            raise RuntimeError(f"plugin API server did not start within {startup_timeout_s}s")
        time.sleep(0.01)
    return server, thread


def stop(server: uvicorn.Server, thread: threading.Thread, *, timeout_s: float = 5.0) -> None:
    server.should_exit = True
    thread.join(timeout_s)


def bound_port(server: uvicorn.Server) -> int:
    """Port the running server listens on (useful when started with port 0)."""
    for listener in server.servers:
        for sock in listener.sockets:
            return sock.getsockname()[1]
    raise RuntimeError("plugin API server is not listening")
