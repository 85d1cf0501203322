"""Single user-visible error slot for the session controller."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import SessionError

INITIALIZING_MESSAGE = "Initializing chat session..."


@dataclass(frozen=True, slots=True)
class ErrorSurfaceSnapshot:
    """What the overlay should render right now."""

    message: str | None
    fallback_message: str | None
    retry_available: bool
    error_code: str | None = None

    @property
    def visible(self) -> bool:
        return bool(self.message or self.fallback_message)


class ErrorSurface:
    """Holds at most one current error.

    Only the session controller writes to the surface. The retry affordance
    is offered while an error whose type is retryable is shown; auto-start
    notices are displayed without it.
    """

    def __init__(self) -> None:
        self._error: SessionError | None = None

    @property
    def error(self) -> SessionError | None:
        return self._error

    @property
    def message(self) -> str | None:
        if self._error is None or not self._error.message:
            return None
        return self._error.message

    @property
    def has_error(self) -> bool:
        return self.message is not None

    @property
    def retry_available(self) -> bool:
        return self.has_error and type(self._error).retryable

    def show(self, error: SessionError) -> bool:
        """Replace the current error; returns ``True`` if anything changed."""

        changed = self._error is not error
        self._error = error
        return changed

    def clear(self) -> bool:
        changed = self._error is not None
        self._error = None
        return changed

    def fallback_message(self, *, initializing: bool) -> str | None:
        if self.has_error or not initializing:
            return None
        return INITIALIZING_MESSAGE

    def snapshot(self, *, initializing: bool) -> ErrorSurfaceSnapshot:
        return ErrorSurfaceSnapshot(
            message=self.message,
            fallback_message=self.fallback_message(initializing=initializing),
            retry_available=self.retry_available,
            error_code=self._error.error_code if self._error is not None else None,
        )


__all__ = ["ErrorSurface", "ErrorSurfaceSnapshot", "INITIALIZING_MESSAGE"]
