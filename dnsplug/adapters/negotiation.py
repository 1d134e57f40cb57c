"""Client side of the media-type negotiation handshake."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from dnsplug.adapters.api_errors import ProtocolError
from dnsplug.domain.contract import CONTENT_TYPE_HEADER, MEDIA_TYPE, VARY_HEADER


@dataclass(frozen=True)
class NegotiationDescriptor:
    """Headers a compatible plugin server returns from its root path."""

    media_type: str = MEDIA_TYPE
    vary: str = CONTENT_TYPE_HEADER


def negotiate(
    session: Any,
    base_url: str,
    *,
    expected: Optional[NegotiationDescriptor] = None,
    timeout: Optional[float] = None,
) -> NegotiationDescriptor:
    """Ask the server at ``base_url`` which media type it speaks.

    Returns the descriptor observed on the wire when it matches ``expected``.

    Raises:
        TransportError: The server could not be reached.
        ProtocolError: Non-2xx status or header mismatch.
    """
    want = expected or NegotiationDescriptor()
    ctx = f"negotiate[{base_url}]"
    resp = session.get(base_url, accept=want.media_type, timeout=timeout)
    status = resp.status_code
    if not 200 <= status < 300:
        raise ProtocolError(f"{ctx}: HTTP {status}", status=status, context=ctx)

    headers = getattr(resp, "headers", None) or {}
    seen = NegotiationDescriptor(
        media_type=headers.get(CONTENT_TYPE_HEADER, ""),
        vary=headers.get(VARY_HEADER, ""),
    )
    if seen.vary != want.vary:
        raise ProtocolError(
            f"{ctx}: expected {VARY_HEADER} '{want.vary}', got '{seen.vary}'",
            status=status,
            context=ctx,
        )
    if seen.media_type != want.media_type:
        raise ProtocolError(
            f"{ctx}: expected {CONTENT_TYPE_HEADER} '{want.media_type}', got '{seen.media_type}'",
            status=status,
            context=ctx,
        )
    return seen
