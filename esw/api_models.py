from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class _Model(BaseModel):
    # The API server sends far more than we read; ignore the rest.
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ObjectMeta(_Model):
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = Field(default_factory=dict)


class EndpointConditions(_Model):
    ready: bool | None = None


class ObjectReference(_Model):
    kind: str | None = None
    name: str | None = None
    namespace: str | None = None


class EndpointMember(_Model):
    addresses: list[str] = Field(..., description="One or more addresses of the backing process")
    conditions: EndpointConditions | None = None
    target_ref: ObjectReference | None = Field(None, alias="targetRef")
    node_name: str | None = Field(None, alias="nodeName")


class EndpointPort(_Model):
    name: str | None = None
    port: int | None = Field(None, ge=1, le=65535)
    protocol: str | None = None


class EndpointSlice(_Model):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    address_type: str | None = Field(None, alias="addressType")
    endpoints: list[EndpointMember] = Field(default_factory=list)
    ports: list[EndpointPort] | None = None

    @field_validator("endpoints", mode="before")
    @classmethod
    def _null_endpoints(cls, v: Any) -> Any:
        # An EndpointSlice with no members is serialised as "endpoints": null.
        return [] if v is None else v


class SnapshotEvent(_Model):
    type: Literal["ADDED", "MODIFIED", "DELETED"]
    object: EndpointSlice


class ErrorEvent(_Model):
    type: Literal["ERROR"]
    object: dict[str, Any] = Field(default_factory=dict)

    @field_validator("object", mode="before")
    @classmethod
    def _null_status(cls, v: Any) -> Any:
        return {} if v is None else v


ChangeEvent = Annotated[Union[SnapshotEvent, ErrorEvent], Field(discriminator="type")]

_change_event_adapter: TypeAdapter[SnapshotEvent | ErrorEvent] = TypeAdapter(ChangeEvent)


def parse_change_event(line: bytes | str) -> SnapshotEvent | ErrorEvent:
    """Decode one watch record. Raises pydantic.ValidationError on bad JSON or shape."""
    return _change_event_adapter.validate_json(line)
