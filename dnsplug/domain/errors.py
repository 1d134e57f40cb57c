"""Domain-level error types raised by local provider implementations.

Transport-specific failures live in ``dnsplug.adapters.api_errors``; this
module only holds errors a provider raises about its own work.
"""

from __future__ import annotations

from typing import Optional


class LocalCapabilityError(Exception):
    """A local provider could not complete the requested operation."""

    def __init__(self, message: str, *, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
