"""Error taxonomy for session negotiation and tool dispatch.

Every failure the controller knows about is expressed as a
:class:`SessionError` subclass so it can be logged, serialized, and shown
on the error surface through a single code path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


class ErrorCode:
    """Constants for machine-readable error codes."""

    WORKFLOW_NOT_CONFIGURED = "workflow_not_configured"
    ENDPOINT_NOT_CONFIGURED = "endpoint_not_configured"

    TRANSPORT_FAILED = "transport_failed"
    HTTP_ERROR = "http_error"
    MISSING_CLIENT_SECRET = "missing_client_secret"

    UNKNOWN_TOOL = "unknown_tool"
    INVALID_PARAMETER = "invalid_parameter"
    HANDLER_FAILED = "handler_failed"

    AUTO_START_FAILED = "auto_start_failed"


@dataclass
class SessionError(Exception):
    """Base exception for all controller-level failures.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable description shown to the user.
        details: Additional structured information for logs.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    # Whether the error surface offers a manual reset for this error.
    retryable: ClassVar[bool] = False

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        return result

    def __str__(self) -> str:
        return self.message


@dataclass
class ConfigurationError(SessionError):
    """Workflow or endpoint is unset; needs operator action."""

    error_code: str = field(default=ErrorCode.WORKFLOW_NOT_CONFIGURED)
    message: str = field(default="Set CHATDOCK_WORKFLOW_ID in your environment or settings file.")
    details: dict[str, Any] = field(default_factory=dict)

    retryable: ClassVar[bool] = True


@dataclass
class NegotiationError(SessionError):
    """Transport failure or a failure reported by the session backend."""

    error_code: str = field(default=ErrorCode.TRANSPORT_FAILED)
    message: str = field(default="Unable to start chat session.")
    details: dict[str, Any] = field(default_factory=dict)
    status_code: int | None = None

    retryable: ClassVar[bool] = True

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.status_code is not None:
            result["status_code"] = self.status_code
        return result


@dataclass
class ProtocolError(SessionError):
    """Unrecognized tool or malformed tool parameters.

    Reported back to the agent as a failed tool result, never shown on the
    error surface.
    """

    error_code: str = field(default=ErrorCode.UNKNOWN_TOOL)
    message: str = field(default="Unsupported client tool.")
    details: dict[str, Any] = field(default_factory=dict)
    tool_name: str = ""


@dataclass
class AutoStartError(SessionError):
    """Best-effort initial message could not be sent; the session stays usable."""

    error_code: str = field(default=ErrorCode.AUTO_START_FAILED)
    message: str = field(
        default="Connected, but failed to send the initial message. You can type manually."
    )
    details: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "AutoStartError",
    "ConfigurationError",
    "ErrorCode",
    "NegotiationError",
    "ProtocolError",
    "SessionError",
]
