"""Shared HTTP transport for the provider plugin REST adapter.

This module provides a thin wrapper around ``requests.Session`` so the proxy
and the negotiation step share timeout policy and header construction.

Dependencies:
    - ``requests`` for network I/O.
    - ``dnsplug.adapters.api_errors.TransportError`` for typed transport failures.

Call context:
    - Constructed by ``dnsplug.adapters.provider_rest.ProviderRestAdapter``.
    - Used by ``dnsplug.adapters.negotiation.negotiate`` during construction.

Each method sends exactly one request. Retrying is left to whoever drives the
orchestration cycle.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests import exceptions as req_exc

from dnsplug.adapters.api_errors import TransportError
from dnsplug.domain.contract import ACCEPT_HEADER, CONTENT_TYPE_HEADER, JSON_CONTENT_TYPE


@dataclass
class HttpConfig:
    """Timeout configuration for plugin HTTP calls.

    Attributes:
        request_timeout_s: Default timeout in seconds for one request. It also
            serves as the caller's deadline: when it expires the request is
            abandoned and reported as a transport failure.
    """
    request_timeout_s: float = 10.0


class PluginSession:
    """Single-shot ``requests`` wrapper used by the REST proxy.

    This class is intentionally transport-only. Callers provide endpoint URLs and
    decide how to map non-200 responses into errors or fallbacks.
    """

    def __init__(self, cfg: Optional[HttpConfig] = None) -> None:
        """Create a session.

        Args:
            cfg: Shared timeout settings.

        Side Effects:
            Creates a persistent ``requests.Session`` object.
        """
        self.session = requests.Session()
        self.cfg = cfg or HttpConfig()

    def _headers(
        self, accept: str = JSON_CONTENT_TYPE, json_body: bool = False
    ) -> Dict[str, str]:
        headers = {ACCEPT_HEADER: accept}
        if json_body:
            headers[CONTENT_TYPE_HEADER] = JSON_CONTENT_TYPE
        return headers

    def get(
        self,
        url: str,
        *,
        accept: str = JSON_CONTENT_TYPE,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        """Send one GET request.

        Args:
            url: Absolute endpoint URL.
            accept: ``Accept`` header value.
            timeout: Optional timeout override in seconds.

        Returns:
            ``requests.Response`` for whatever status the server returned.

        Raises:
            TransportError: If the request fails before a response arrives.
        """
        context = f"GET {url}"
        try:
            return self.session.get(
                url,
                headers=self._headers(accept=accept),
                timeout=self.cfg.request_timeout_s if timeout is None else timeout,
            )
        except req_exc.Timeout as exc:
            raise TransportError(f"Timeout contacting {url}", context=context) from exc
        except req_exc.RequestException as exc:
            raise TransportError(f"Cannot reach {url}: {exc}", context=context) from exc

    def post(
        self,
        url: str,
        *,
        json_body: Any = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        """Send one JSON POST request.

        Args:
            url: Absolute endpoint URL.
            json_body: Optional JSON-ready payload (object or array).
            timeout: Optional timeout override in seconds.

        Raises:
            TransportError: If the request fails before a response arrives.

        Side Effects:
            Serializes ``json_body`` with ``json.dumps`` before sending.
        """
        context = f"POST {url}"
        data = None if json_body is None else json.dumps(json_body)
        try:
            return self.session.post(
                url,
                data=data,
                headers=self._headers(json_body=json_body is not None),
                timeout=self.cfg.request_timeout_s if timeout is None else timeout,
            )
        except req_exc.Timeout as exc:
            raise TransportError(f"Timeout contacting {url}", context=context) from exc
        except req_exc.RequestException as exc:
            raise TransportError(f"Cannot reach {url}: {exc}", context=context) from exc

    def close(self) -> None:
        self.session.close()


__all__ = ["HttpConfig", "PluginSession"]
