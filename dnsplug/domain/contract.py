"""Wire contract shared by the REST proxy and the plugin API server.

Route names, header names and the negotiated media type live here once so
both sides of the protocol are built from the same values.
"""

from __future__ import annotations

from typing import Literal

MEDIA_TYPE = "application/external.dns.plugin+json;version=1"
JSON_CONTENT_TYPE = "application/json"

CONTENT_TYPE_HEADER = "Content-Type"
ACCEPT_HEADER = "Accept"
VARY_HEADER = "Vary"

DEFAULT_PORT = 8888

ROUTE_NEGOTIATE = "/"
ROUTE_RECORDS = "/records"
ROUTE_PROPERTY_VALUES_EQUAL = "/propertyvaluesequal"
ROUTE_ADJUST_ENDPOINTS = "/adjustendpoints"

Operation = Literal["records", "apply_changes", "property_values_equal", "adjust_endpoints"]

OP_RECORDS: Operation = "records"
OP_APPLY_CHANGES: Operation = "apply_changes"
OP_PROPERTY_VALUES_EQUAL: Operation = "property_values_equal"
OP_ADJUST_ENDPOINTS: Operation = "adjust_endpoints"

OPERATIONS = (OP_RECORDS, OP_APPLY_CHANGES, OP_PROPERTY_VALUES_EQUAL, OP_ADJUST_ENDPOINTS)

__all__ = [
    "ACCEPT_HEADER",
    "CONTENT_TYPE_HEADER",
    "DEFAULT_PORT",
    "JSON_CONTENT_TYPE",
    "MEDIA_TYPE",
    "OPERATIONS",
    "OP_ADJUST_ENDPOINTS",
    "OP_APPLY_CHANGES",
    "OP_PROPERTY_VALUES_EQUAL",
    "OP_RECORDS",
    "Operation",
    "ROUTE_ADJUST_ENDPOINTS",
    "ROUTE_NEGOTIATE",
    "ROUTE_PROPERTY_VALUES_EQUAL",
    "ROUTE_RECORDS",
    "VARY_HEADER",
]
