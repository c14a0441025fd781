"""Exception types shared across the tool invocation modules."""

from __future__ import annotations

from typing import Any, Mapping


class AgentCallError(Exception):
    """Base class for tool registration and invocation failures."""


class DuplicateToolError(AgentCallError):
    """Raised when a tool name is registered twice."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"tool '{name}' is already registered")


class ArgumentValidationError(AgentCallError, ValueError):
    """Raised when a payload does not satisfy a parameter schema."""

    kind = "invalid_arguments"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"violation": self.kind, "field": self.field}


class MissingFieldError(ArgumentValidationError):
    kind = "missing_field"

    def __init__(self, field: str):
        super().__init__(field, f"missing required field '{field}'")


class TypeMismatchError(ArgumentValidationError):
    kind = "type_mismatch"

    def __init__(self, field: str, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(field, f"field '{field}' expected {expected}, got {actual}")

    def details(self) -> dict[str, Any]:
        payload = super().details()
        payload.update(expected=self.expected, actual=self.actual)
        return payload


class InvalidEnumError(ArgumentValidationError):
    kind = "invalid_enum"

    def __init__(self, field: str, allowed: list[Any], value: Any):
        self.allowed = list(allowed)
        self.value = value
        choices = ", ".join(repr(item) for item in self.allowed)
        super().__init__(field, f"field '{field}' must be one of {choices}; got {value!r}")

    def details(self) -> dict[str, Any]:
        payload = super().details()
        payload.update(allowed=self.allowed)
        return payload


class UnexpectedFieldError(ArgumentValidationError):
    kind = "unexpected_field"

    def __init__(self, field: str):
        super().__init__(field, f"unexpected field '{field}'")


class ToolHandlerError(AgentCallError):
    """Raised by handlers for a recoverable failure with structured details."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None):
        super().__init__(message)
        self.details = dict(details or {})


class InvocationCancelled(AgentCallError):
    """Raised inside a handler once its invocation has been cancelled."""

    def __init__(self, reason: str | None = None):
        self.reason = reason or "cancelled"
        super().__init__(self.reason)


__all__ = [
    "AgentCallError",
    "ArgumentValidationError",
    "DuplicateToolError",
    "InvalidEnumError",
    "InvocationCancelled",
    "MissingFieldError",
    "ToolHandlerError",
    "TypeMismatchError",
    "UnexpectedFieldError",
]
