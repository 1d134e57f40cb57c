"""REST adapter that makes a remote provider plugin look like a local provider.

Every call is one HTTP round trip against the configured base URL. Failure
handling differs per operation:

* ``records`` and ``apply_changes`` raise. There is no sensible default for
  what records exist or whether a change was applied.
* ``property_values_equal`` and ``adjust_endpoints`` fall back to a local
  default (literal equality, endpoints unchanged). Each fallback is logged and
  counted because the caller cannot otherwise see that the remote failed.
* ``get_domain_filter`` never touches the network; the remote side applies its
  own filter, so the proxy reports an accept-all filter unless told otherwise.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

import requests

from dnsplug.adapters.api_errors import (
    ApiError,
    MalformedPayloadError,
    RemoteServerError,
    build_error_message,
    parse_error_payload,
)
from dnsplug.adapters.http_client import HttpConfig, PluginSession
from dnsplug.adapters.metrics import PrometheusFailureRecorder
from dnsplug.adapters.negotiation import NegotiationDescriptor, negotiate as negotiate_media_type
from dnsplug.adapters.wire import (
    changes_to_wire,
    endpoints_from_wire,
    endpoints_to_wire,
    property_request_to_wire,
    property_response_from_wire,
)
from dnsplug.domain.contract import (
    OP_ADJUST_ENDPOINTS,
    OP_APPLY_CHANGES,
    OP_PROPERTY_VALUES_EQUAL,
    OP_RECORDS,
    ROUTE_ADJUST_ENDPOINTS,
    ROUTE_NEGOTIATE,
    ROUTE_PROPERTY_VALUES_EQUAL,
    ROUTE_RECORDS,
)
from dnsplug.domain.entities import ACCEPT_ALL, Changes, DomainFilter, Endpoint
from dnsplug.domain.ports import FailureRecorder, ProviderPort

CompareFallback = Callable[[str, str, str], bool]
AdjustFallback = Callable[[Sequence[Endpoint]], List[Endpoint]]


def default_property_values_equal(name: str, previous: str, current: str) -> bool:
    """Fallback for ``property_values_equal``: plain string equality."""
    return previous == current


def default_adjust_endpoints(endpoints: Sequence[Endpoint]) -> List[Endpoint]:
    """Fallback for ``adjust_endpoints``: the input, same elements and order."""
    return list(endpoints)


class ProviderRestAdapter(ProviderPort):
    """HTTP proxy for `/records`, `/propertyvaluesequal` and `/adjustendpoints`."""

    def __init__(
        self,
        base_url: str,
        *,
        request_timeout_s: float = 10.0,
        recorder: Optional[FailureRecorder] = None,
        domain_filter: Optional[DomainFilter] = None,
        compare_fallback: CompareFallback = default_property_values_equal,
        adjust_fallback: AdjustFallback = default_adjust_endpoints,
        soft_failures: bool = True,
        negotiate: bool = True,
        strict_negotiation: bool = True,
        session: Any = None,
    ) -> None:
        """Create the proxy and, unless disabled, run the negotiation handshake.

        Args:
            base_url: Root URL of the plugin server, e.g. ``http://localhost:8888``.
            request_timeout_s: Per-request timeout; also the deadline after
                which an in-flight call is abandoned.
            recorder: Failure counter sink. Defaults to Prometheus counters on a
                private registry.
            domain_filter: Filter reported by ``get_domain_filter``.
            compare_fallback: Result used when ``property_values_equal`` fails.
            adjust_fallback: Result used when ``adjust_endpoints`` fails.
            soft_failures: When ``False`` the compare/adjust operations raise
                like ``records`` does instead of using their fallbacks.
            negotiate: Perform the handshake during construction.
            strict_negotiation: Raise on handshake failure; otherwise only log.
            session: Transport object exposing ``get``/``post`` like
                ``PluginSession``.

        Raises:
            ValueError: ``base_url`` is empty.
            TransportError: Strict handshake could not reach the server.
            ProtocolError: Strict handshake saw a different media type.
        """
        cleaned = str(base_url or "").strip()
        if not cleaned:
            raise ValueError("ProviderRestAdapter requires a base URL")

        self._log = logging.getLogger(__name__)
        self.base_url = cleaned.rstrip("/")
        self.cfg = HttpConfig(request_timeout_s=request_timeout_s)
        self.session = session if session is not None else PluginSession(self.cfg)
        self.recorder: FailureRecorder = recorder or PrometheusFailureRecorder()
        self.domain_filter = domain_filter or ACCEPT_ALL
        self.compare_fallback = compare_fallback
        self.adjust_fallback = adjust_fallback
        self.soft_failures = soft_failures
        self.negotiated: Optional[NegotiationDescriptor] = None

        if negotiate:
            self._negotiate(strict=strict_negotiation)

    # ---------- ProviderPort implementation ----------

    def records(self, *, timeout: Optional[float] = None) -> List[Endpoint]:
        """Fetch all records. Raises ``ApiError`` on any failure."""
        ctx = "records"
        try:
            resp = self.session.get(self._make_url(ROUTE_RECORDS), timeout=timeout)
            self._ensure_ok(resp, ctx)
            return endpoints_from_wire(self._json_any(resp, ctx), ctx=ctx)
        except ApiError as exc:
            self._hard_fail(OP_RECORDS, exc)
            raise

    def apply_changes(self, changes: Changes, *, timeout: Optional[float] = None) -> None:
        """Send a change-set. Raises ``ApiError`` unless the server answers 200."""
        ctx = "apply_changes"
        try:
            resp = self.session.post(
                self._make_url(ROUTE_RECORDS),
                json_body=changes_to_wire(changes),
                timeout=timeout,
            )
            self._ensure_ok(resp, ctx)
        except ApiError as exc:
            self._hard_fail(OP_APPLY_CHANGES, exc)
            raise

    def property_values_equal(
        self,
        name: str,
        previous: str,
        current: str,
        *,
        timeout: Optional[float] = None,
    ) -> bool:
        """Ask the remote whether two property values are equivalent.

        Falls back to ``compare_fallback`` on any failure.
        """
        ctx = "property_values_equal"
        try:
            resp = self.session.post(
                self._make_url(ROUTE_PROPERTY_VALUES_EQUAL),
                json_body=property_request_to_wire(name, previous, current),
                timeout=timeout,
            )
            self._ensure_ok(resp, ctx)
            return property_response_from_wire(self._json_any(resp, ctx), ctx=ctx)
        except ApiError as exc:
            self._soft_fail(OP_PROPERTY_VALUES_EQUAL, exc)
            return self.compare_fallback(name, previous, current)

    def adjust_endpoints(
        self,
        endpoints: List[Endpoint],
        *,
        timeout: Optional[float] = None,
    ) -> List[Endpoint]:
        """Let the remote normalize endpoints.

        Falls back to ``adjust_fallback`` (the input unchanged) on any failure.
        """
        ctx = "adjust_endpoints"
        try:
            resp = self.session.post(
                self._make_url(ROUTE_ADJUST_ENDPOINTS),
                json_body=endpoints_to_wire(endpoints),
                timeout=timeout,
            )
            self._ensure_ok(resp, ctx)
            return endpoints_from_wire(self._json_any(resp, ctx), ctx=ctx)
        except ApiError as exc:
            self._soft_fail(OP_ADJUST_ENDPOINTS, exc)
            return self.adjust_fallback(endpoints)

    def get_domain_filter(self) -> DomainFilter:
        return self.domain_filter

    def close(self) -> None:
        close = getattr(self.session, "close", None)
        if callable(close):
            close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _negotiate(self, *, strict: bool) -> None:
        try:
            self.negotiated = negotiate_media_type(self.session, self._make_url(ROUTE_NEGOTIATE))
        except ApiError as exc:
            if strict:
                raise
            self._log.warning(
                "Negotiation with %s failed, continuing without it: %s", self.base_url, exc
            )
            return
        self._log.debug("Negotiated %s with %s", self.negotiated.media_type, self.base_url)

    def _hard_fail(self, operation: str, exc: ApiError) -> None:
        self.recorder.record_failure(operation)
        self._log.error("%s against %s failed: %s", operation, self.base_url, exc)

    def _soft_fail(self, operation: str, exc: ApiError) -> None:
        self.recorder.record_failure(operation)
        if not self.soft_failures:
            self._log.error("%s against %s failed: %s", operation, self.base_url, exc)
            raise exc
        self._log.warning(
            "%s against %s failed, using local default: %s", operation, self.base_url, exc
        )

    def _make_url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @staticmethod
    def _ensure_ok(resp: requests.Response, ctx: str) -> None:
        status = resp.status_code
        if status == 200:
            return
        payload = parse_error_payload(resp)
        raise RemoteServerError(
            build_error_message(ctx, status, payload),
            status=status,
            payload=payload,
            context=ctx,
        )

    @staticmethod
    def _json_any(resp: requests.Response, ctx: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            snippet = (getattr(resp, "text", "") or "")[:400]
            raise MalformedPayloadError(
                f"{ctx}: invalid JSON response: {snippet}", context=ctx
            ) from exc


__all__ = [
    "AdjustFallback",
    "CompareFallback",
    "ProviderRestAdapter",
    "default_adjust_endpoints",
    "default_property_values_equal",
]
