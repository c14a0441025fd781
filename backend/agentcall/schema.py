"""Pydantic models for tool contracts, invocation envelopes and introspection."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Mapping
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

PropertyType = Literal["string", "number", "integer", "boolean", "object", "array"]


def iso_timestamp() -> str:
    """Return an ISO-8601 timestamp string (UTC)."""
    return datetime.now(timezone.utc).isoformat()


def _check_required(properties: Mapping[str, Any] | None, required: list[str]) -> None:
    declared = properties or {}
    undeclared = [name for name in required if name not in declared]
    if undeclared:
        raise ValueError(f"required fields are not declared: {', '.join(undeclared)}")


class PropertySchema(BaseModel):
    """Contract for one named argument."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: PropertyType
    description: str | None = None
    enum: list[Any] | None = None
    properties: dict[str, "PropertySchema"] | None = None
    required: list[str] = Field(default_factory=list)
    additional_properties: bool = Field(default=True, alias="additionalProperties")

    @model_validator(mode="after")
    def _validate_shape(self) -> "PropertySchema":
        if self.enum is not None and not self.enum:
            raise ValueError("enum must list at least one value")
        if self.type != "object" and (self.properties or self.required):
            raise ValueError(f"nested properties require type 'object', not '{self.type}'")
        _check_required(self.properties, self.required)
        return self

    def nested(self) -> "ParameterSchema | None":
        """Return the nested object contract, if this property declares one."""
        if self.type != "object" or self.properties is None:
            return None
        return ParameterSchema(
            properties=self.properties,
            required=self.required,
            additional_properties=self.additional_properties,
        )


class ParameterSchema(BaseModel):
    """Object-shaped argument contract declared by a tool."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Literal["object"] = "object"
    properties: dict[str, PropertySchema] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    additional_properties: bool = Field(default=True, alias="additionalProperties")

    @model_validator(mode="after")
    def _validate_required(self) -> "ParameterSchema":
        _check_required(self.properties, self.required)
        return self

    def to_json_schema(self) -> dict[str, Any]:
        """Render the contract as a JSON-Schema object for the model prompt."""
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude_defaults=True)
        payload["type"] = "object"
        payload.setdefault("properties", {})
        payload.setdefault("required", [])
        payload["additionalProperties"] = self.additional_properties
        return payload


class InvocationRequest(BaseModel):
    """An agent's raw request to call a tool."""

    model_config = ConfigDict(extra="forbid")

    tool_name: str
    arguments: Any = Field(default_factory=dict)
    caller_id: str = "agent"
    call_id: str = Field(default_factory=lambda: str(uuid4()))


class FailureKind(str, Enum):
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGUMENTS = "invalid_arguments"
    HANDLER_ERROR = "handler_error"
    CANCELLED = "cancelled"


class InvocationError(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: FailureKind
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class InvocationResult(BaseModel):
    """Terminal outcome of one invocation; the agent loop consumes ``render()``."""

    model_config = ConfigDict(extra="forbid")

    status: Literal["success", "failure"]
    tool_name: str
    call_id: str
    caller_id: str
    value: str | None = None
    error: InvocationError | None = None
    duration_ms: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _validate_outcome(self) -> "InvocationResult":
        if self.status == "success":
            if self.value is None or self.error is not None:
                raise ValueError("successful result requires a value and no error")
        elif self.error is None or self.value is not None:
            raise ValueError("failed result requires an error and no value")
        return self

    @classmethod
    def succeeded(
        cls, request: InvocationRequest, value: str, *, duration_ms: int = 0
    ) -> "InvocationResult":
        return cls(
            status="success",
            tool_name=request.tool_name,
            call_id=request.call_id,
            caller_id=request.caller_id,
            value=value,
            duration_ms=max(int(duration_ms), 0),
        )

    @classmethod
    def failed(
        cls,
        request: InvocationRequest,
        kind: FailureKind,
        message: str,
        *,
        details: Mapping[str, Any] | None = None,
        duration_ms: int = 0,
    ) -> "InvocationResult":
        return cls(
            status="failure",
            tool_name=request.tool_name,
            call_id=request.call_id,
            caller_id=request.caller_id,
            error=InvocationError(kind=kind, message=message, details=dict(details or {})),
            duration_ms=max(int(duration_ms), 0),
        )

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def kind(self) -> FailureKind | None:
        return self.error.kind if self.error else None

    @property
    def message(self) -> str | None:
        return self.error.message if self.error else None

    def render(self) -> str:
        """Plain text substituted for the tool output in the conversation."""
        if self.error is None:
            return self.value or ""
        if self.error.kind == FailureKind.UNKNOWN_TOOL:
            return f"Error: {self.error.message}"
        return (
            f"There was an error while calling the tool '{self.tool_name}' "
            f"({self.error.kind.value}): {self.error.message}"
        )


class IntrospectionEvent(BaseModel):
    """One caller-tagged progress message."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()))
    seq: int = Field(default=0, ge=0)
    ts: str = Field(default_factory=iso_timestamp)
    caller_id: str
    text: str
    call_id: str | None = None


__all__ = [
    "FailureKind",
    "IntrospectionEvent",
    "InvocationError",
    "InvocationRequest",
    "InvocationResult",
    "ParameterSchema",
    "PropertySchema",
    "iso_timestamp",
]
