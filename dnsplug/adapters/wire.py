"""JSON wire models for the provider plugin protocol.

Purpose:
    Define the on-the-wire shape of endpoints, change-sets and the small
    request/response envelopes, and convert between those shapes and the
    frozen domain entities in ``dnsplug.domain.entities``.

Dependencies:
    - ``pydantic`` models validate both directions; the FastAPI server decodes
      request bodies with the same helpers the proxy uses on responses.

Call context:
    - ``dnsplug.adapters.provider_rest`` encodes requests and decodes responses.
    - ``plugin_api.app`` decodes request bodies and encodes results.

Field names follow the established JSON encoding (``dnsName``, ``recordTTL``...).
Empty endpoint fields are omitted on encode; missing or ``null`` fields decode
to empty values.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from dnsplug.adapters.api_errors import MalformedPayloadError
from dnsplug.domain.entities import Changes, Endpoint, ProviderSpecificProperty


class ProviderSpecificWire(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    value: str = ""


class EndpointWire(BaseModel):
    """Wire form of ``Endpoint``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    dns_name: str = Field("", alias="dnsName")
    targets: List[str] = Field(default_factory=list)
    record_type: str = Field("", alias="recordType")
    set_identifier: str = Field("", alias="setIdentifier")
    record_ttl: int = Field(0, alias="recordTTL", ge=0)
    labels: Dict[str, str] = Field(default_factory=dict)
    provider_specific: List[ProviderSpecificWire] = Field(
        default_factory=list, alias="providerSpecific"
    )

    @field_validator("targets", "provider_specific", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("labels", mode="before")
    @classmethod
    def _null_map(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("dns_name", "record_type", "set_identifier", mode="before")
    @classmethod
    def _null_str(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def from_domain(cls, endpoint: Endpoint) -> "EndpointWire":
        return cls(
            dns_name=endpoint.dns_name,
            targets=list(endpoint.targets),
            record_type=endpoint.record_type,
            set_identifier=endpoint.set_identifier,
            record_ttl=endpoint.record_ttl,
            labels=dict(endpoint.labels),
            provider_specific=[
                ProviderSpecificWire(name=prop.name, value=prop.value)
                for prop in endpoint.provider_specific
            ],
        )

    def to_domain(self) -> Endpoint:
        return Endpoint(
            dns_name=self.dns_name,
            targets=tuple(self.targets),
            record_type=self.record_type,
            set_identifier=self.set_identifier,
            record_ttl=self.record_ttl,
            labels=dict(self.labels),
            provider_specific=tuple(
                ProviderSpecificProperty(name=prop.name, value=prop.value)
                for prop in self.provider_specific
            ),
        )

    def to_wire(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True)
        # omitempty: zero values are left out of the encoded object
        return {key: value for key, value in data.items() if value not in ("", 0, [], {})}


def _changes_field(name: str, legacy: str) -> Any:
    return Field(
        default_factory=list,
        validation_alias=AliasChoices(name, legacy),
        serialization_alias=name,
    )


class ChangesWire(BaseModel):
    """Wire form of ``Changes``.

    Accepts both camelCase keys and the capitalised keys older servers emit.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    create: List[EndpointWire] = _changes_field("create", "Create")
    update_old: List[EndpointWire] = _changes_field("updateOld", "UpdateOld")
    update_new: List[EndpointWire] = _changes_field("updateNew", "UpdateNew")
    delete: List[EndpointWire] = _changes_field("delete", "Delete")

    @field_validator("create", "update_old", "update_new", "delete", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _paired_updates(self) -> "ChangesWire":
        if len(self.update_old) != len(self.update_new):
            raise ValueError(
                f"updateOld has {len(self.update_old)} entries but updateNew has "
                f"{len(self.update_new)}"
            )
        return self

    @classmethod
    def from_domain(cls, changes: Changes) -> "ChangesWire":
        return cls(
            create=[EndpointWire.from_domain(ep) for ep in changes.create],
            update_old=[EndpointWire.from_domain(ep) for ep in changes.update_old],
            update_new=[EndpointWire.from_domain(ep) for ep in changes.update_new],
            delete=[EndpointWire.from_domain(ep) for ep in changes.delete],
        )

    def to_domain(self) -> Changes:
        return Changes(
            create=tuple(ep.to_domain() for ep in self.create),
            update_old=tuple(ep.to_domain() for ep in self.update_old),
            update_new=tuple(ep.to_domain() for ep in self.update_new),
            delete=tuple(ep.to_domain() for ep in self.delete),
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "create": [ep.to_wire() for ep in self.create],
            "updateOld": [ep.to_wire() for ep in self.update_old],
            "updateNew": [ep.to_wire() for ep in self.update_new],
            "delete": [ep.to_wire() for ep in self.delete],
        }


class PropertyValuesEqualRequest(BaseModel):
    """Missing or ``null`` fields read as empty strings."""

    name: str = ""
    previous: str = ""
    current: str = ""

    @field_validator("name", "previous", "current", mode="before")
    @classmethod
    def _null_str(cls, value: Any) -> Any:
        return "" if value is None else value


class PropertyValuesEqualResponse(BaseModel):
    equals: StrictBool


_ENDPOINT_LIST = TypeAdapter(Optional[List[EndpointWire]])


# ---------------------------------------------------------------------------
# Domain <-> JSON-ready helpers
# ---------------------------------------------------------------------------
def endpoints_to_wire(endpoints: Iterable[Endpoint]) -> List[Dict[str, Any]]:
    return [EndpointWire.from_domain(ep).to_wire() for ep in endpoints]


def endpoints_from_wire(data: Any, *, ctx: str = "endpoints") -> List[Endpoint]:
    try:
        parsed = _ENDPOINT_LIST.validate_python(data)
    except ValidationError as exc:
        raise MalformedPayloadError(f"{ctx}: invalid endpoint list: {exc}", context=ctx) from exc
    return [ep.to_domain() for ep in parsed or []]


def changes_to_wire(changes: Changes) -> Dict[str, Any]:
    return ChangesWire.from_domain(changes).to_wire()


def changes_from_wire(data: Any, *, ctx: str = "changes") -> Changes:
    if data is None:
        return Changes()
    try:
        parsed = ChangesWire.model_validate(data)
    except ValidationError as exc:
        raise MalformedPayloadError(f"{ctx}: invalid change-set: {exc}", context=ctx) from exc
    return parsed.to_domain()


def property_request_to_wire(name: str, previous: str, current: str) -> Dict[str, Any]:
    return PropertyValuesEqualRequest(name=name, previous=previous, current=current).model_dump()


def property_request_from_wire(
    data: Any, *, ctx: str = "propertyvaluesequal"
) -> PropertyValuesEqualRequest:
    if data is None:
        return PropertyValuesEqualRequest()
    try:
        return PropertyValuesEqualRequest.model_validate(data)
    except ValidationError as exc:
        raise MalformedPayloadError(f"{ctx}: invalid request: {exc}", context=ctx) from exc


def property_response_from_wire(data: Any, *, ctx: str = "propertyvaluesequal") -> bool:
    try:
        return PropertyValuesEqualResponse.model_validate(data).equals
    except ValidationError as exc:
        raise MalformedPayloadError(f"{ctx}: invalid response: {exc}", context=ctx) from exc


__all__ = [
    "ChangesWire",
    "EndpointWire",
    "PropertyValuesEqualRequest",
    "PropertyValuesEqualResponse",
    "ProviderSpecificWire",
    "changes_from_wire",
    "changes_to_wire",
    "endpoints_from_wire",
    "endpoints_to_wire",
    "property_request_from_wire",
    "property_request_to_wire",
    "property_response_from_wire",
]
