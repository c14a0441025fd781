"""Agent tool invocation: registry, argument validation, supervised dispatch."""

from .cancellation import CancellationToken
from .context import InvocationContext
from .dispatcher import Dispatcher
from .exceptions import (
    AgentCallError,
    ArgumentValidationError,
    DuplicateToolError,
    InvalidEnumError,
    InvocationCancelled,
    MissingFieldError,
    ToolHandlerError,
    TypeMismatchError,
    UnexpectedFieldError,
)
from .introspection import IntrospectionSink, JsonlIntrospectionLog
from .schema import (
    FailureKind,
    IntrospectionEvent,
    InvocationRequest,
    InvocationResult,
    ParameterSchema,
    PropertySchema,
)
from .tools import ToolDescriptor, ToolExample, ToolRegistry
from .validation import validate_arguments

__all__ = [
    "AgentCallError",
    "ArgumentValidationError",
    "CancellationToken",
    "Dispatcher",
    "DuplicateToolError",
    "FailureKind",
    "IntrospectionEvent",
    "IntrospectionSink",
    "InvalidEnumError",
    "InvocationCancelled",
    "InvocationContext",
    "InvocationRequest",
    "InvocationResult",
    "JsonlIntrospectionLog",
    "MissingFieldError",
    "ParameterSchema",
    "PropertySchema",
    "ToolDescriptor",
    "ToolExample",
    "ToolHandlerError",
    "ToolRegistry",
    "TypeMismatchError",
    "UnexpectedFieldError",
    "validate_arguments",
]
