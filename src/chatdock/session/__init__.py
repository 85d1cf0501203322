"""Session lifecycle, credential negotiation and client tool dispatch."""

from .broker import (
    BrokerSettings,
    CredentialBroker,
    NegotiationFailure,
    NegotiationOutcome,
    NegotiationRequest,
    NegotiationSuccess,
    extract_error_detail,
    is_workflow_configured,
)
from .controller import START_MESSAGE, SessionController, SessionState, WidgetControl
from .dispatcher import FactAction, ToolDispatcher, ToolInvocation, ToolResult
from .error_surface import INITIALIZING_MESSAGE, ErrorSurface, ErrorSurfaceSnapshot
from .errors import (
    AutoStartError,
    ConfigurationError,
    ErrorCode,
    NegotiationError,
    ProtocolError,
    SessionError,
)
from .events import ErrorSurfaceChanged, EventBus, SessionStateChanged, WidgetRemountRequested
from .widget_options import build_widget_options

__all__ = [
    "AutoStartError",
    "BrokerSettings",
    "ConfigurationError",
    "CredentialBroker",
    "ErrorCode",
    "ErrorSurface",
    "ErrorSurfaceChanged",
    "ErrorSurfaceSnapshot",
    "EventBus",
    "FactAction",
    "INITIALIZING_MESSAGE",
    "NegotiationError",
    "NegotiationFailure",
    "NegotiationOutcome",
    "NegotiationRequest",
    "NegotiationSuccess",
    "ProtocolError",
    "START_MESSAGE",
    "SessionController",
    "SessionError",
    "SessionState",
    "SessionStateChanged",
    "ToolDispatcher",
    "ToolInvocation",
    "ToolResult",
    "WidgetControl",
    "WidgetRemountRequested",
    "build_widget_options",
    "extract_error_detail",
    "is_workflow_configured",
]
