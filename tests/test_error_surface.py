"""Tests for the error surface and the error taxonomy."""

from __future__ import annotations

from chatdock.session.error_surface import INITIALIZING_MESSAGE, ErrorSurface
from chatdock.session.errors import (
    AutoStartError,
    ConfigurationError,
    ErrorCode,
    NegotiationError,
    ProtocolError,
)


def test_empty_surface_shows_fallback_only_while_initializing() -> None:
    surface = ErrorSurface()

    assert surface.has_error is False
    assert surface.fallback_message(initializing=True) == INITIALIZING_MESSAGE
    assert surface.fallback_message(initializing=False) is None
    assert surface.snapshot(initializing=False).visible is False


def test_error_replaces_fallback_and_offers_retry() -> None:
    surface = ErrorSurface()

    assert surface.show(NegotiationError(message="rate_limited", status_code=429)) is True

    snapshot = surface.snapshot(initializing=True)
    assert snapshot.message == "rate_limited"
    assert snapshot.fallback_message is None
    assert snapshot.retry_available is True
    assert snapshot.error_code == ErrorCode.TRANSPORT_FAILED


def test_auto_start_error_has_no_retry() -> None:
    surface = ErrorSurface()
    surface.show(AutoStartError())

    assert surface.message == AutoStartError().message
    assert surface.retry_available is False


def test_blank_message_counts_as_no_error() -> None:
    surface = ErrorSurface()
    surface.show(ConfigurationError(message=""))

    assert surface.has_error is False
    assert surface.retry_available is False
    assert surface.fallback_message(initializing=True) == INITIALIZING_MESSAGE


def test_clear_reports_whether_anything_changed() -> None:
    surface = ErrorSurface()

    assert surface.clear() is False
    surface.show(ConfigurationError())
    assert surface.clear() is True
    assert surface.error is None


def test_error_serialization() -> None:
    error = NegotiationError(
        error_code=ErrorCode.HTTP_ERROR,
        message="Bad Gateway",
        details={"body": "<html>"},
        status_code=502,
    )

    assert str(error) == "Bad Gateway"
    assert error.to_dict() == {
        "error": ErrorCode.HTTP_ERROR,
        "message": "Bad Gateway",
        "details": {"body": "<html>"},
        "status_code": 502,
    }
    assert ProtocolError(tool_name="x").to_dict() == {
        "error": ErrorCode.UNKNOWN_TOOL,
        "message": "Unsupported client tool.",
    }
