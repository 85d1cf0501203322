"""Credential broker negotiating ephemeral widget sessions with the backend."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Union

import httpx

from .errors import ConfigurationError, ErrorCode, NegotiationError, SessionError

LOGGER = logging.getLogger(__name__)

WORKFLOW_PLACEHOLDER_PREFIX = "wf_replace"
_BODY_PREVIEW_CHARS = 1600


def is_workflow_configured(workflow_id: str | None) -> bool:
    """Return ``True`` when ``workflow_id`` is set and is not the placeholder."""

    return bool(workflow_id) and not str(workflow_id).startswith(WORKFLOW_PLACEHOLDER_PREFIX)


@dataclass(slots=True)
class BrokerSettings:
    """Subset of settings required to negotiate sessions."""

    endpoint: str
    workflow_id: str
    file_upload_enabled: bool = True
    request_timeout: float | None = 30.0
    default_headers: Mapping[str, str] | None = None


@dataclass(frozen=True, slots=True)
class NegotiationRequest:
    """Body sent to the session endpoint."""

    workflow_id: str
    file_upload_enabled: bool = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "workflow": {"id": self.workflow_id},
            "chatkit_configuration": {
                "file_upload": {"enabled": self.file_upload_enabled},
            },
        }


@dataclass(frozen=True, slots=True)
class NegotiationSuccess:
    credential: str

    ok = True


@dataclass(frozen=True, slots=True)
class NegotiationFailure:
    error: SessionError

    ok = False

    @property
    def user_message(self) -> str:
        return self.error.message


NegotiationOutcome = Union[NegotiationSuccess, NegotiationFailure]


def extract_error_detail(payload: Any, fallback: str) -> str:
    """Pick the most specific error text from a session endpoint payload.

    The lookup order is ``error`` (string, then ``{"message": ...}``),
    ``details`` (string, then ``details.error`` with the same string or
    message rule), top-level ``message``, and finally ``fallback``. Fields
    that are missing or carry an unexpected type are skipped.
    """

    if not isinstance(payload, Mapping) or not payload:
        return fallback

    detail = _string_or_message(payload.get("error"))
    if detail is not None:
        return detail

    details = payload.get("details")
    if isinstance(details, str):
        return details
    if isinstance(details, Mapping):
        detail = _string_or_message(details.get("error"))
        if detail is not None:
            return detail

    message = payload.get("message")
    if isinstance(message, str):
        return message

    return fallback


def _string_or_message(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        message = value.get("message")
        if isinstance(message, str):
            return message
    return None


class CredentialBroker:
    """Single-shot session negotiation against the configured endpoint.

    The broker never mutates controller state and never raises; each call
    yields exactly one :data:`NegotiationOutcome` for the caller to apply.
    There is no retry or backoff here: recovery is driven by the widget's
    own refresh calls or by a manual reset.
    """

    def __init__(self, settings: BrokerSettings, *, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or self._build_client(settings)

    @property
    def settings(self) -> BrokerSettings:
        return self._settings

    @property
    def is_configured(self) -> bool:
        return is_workflow_configured(self._settings.workflow_id) and bool(self._settings.endpoint)

    async def negotiate(self, previous_credential: str | None = None) -> NegotiationOutcome:
        """Request a fresh credential; ``previous_credential`` is set on refreshes."""

        settings = self._settings
        LOGGER.debug(
            "Credential requested (previous_credential_present=%s, workflow_id=%s, endpoint=%s)",
            bool(previous_credential),
            settings.workflow_id,
            settings.endpoint,
        )

        if not is_workflow_configured(settings.workflow_id):
            return NegotiationFailure(ConfigurationError())
        if not settings.endpoint:
            return NegotiationFailure(
                ConfigurationError(
                    error_code=ErrorCode.ENDPOINT_NOT_CONFIGURED,
                    message="Set CHATDOCK_SESSION_ENDPOINT in your environment or settings file.",
                )
            )

        request = NegotiationRequest(
            workflow_id=settings.workflow_id,
            file_upload_enabled=settings.file_upload_enabled,
        )
        try:
            response = await self._client.post(settings.endpoint, json=request.to_payload())
            raw = response.text
        except Exception as exc:
            LOGGER.error("Failed to create chat session: %s", exc, exc_info=True)
            return NegotiationFailure(
                NegotiationError(
                    message=str(exc) or "Unable to start chat session.",
                    details={"exception": type(exc).__name__},
                )
            )

        LOGGER.debug(
            "Create-session response (status=%s, ok=%s, body=%s)",
            response.status_code,
            response.is_success,
            raw[:_BODY_PREVIEW_CHARS],
        )
        data = self._parse_body(raw)

        if not response.is_success:
            LOGGER.error(
                "Create-session request failed (status=%s, body=%s)",
                response.status_code,
                data,
            )
            detail = extract_error_detail(data, self._status_text(response))
            return NegotiationFailure(
                NegotiationError(
                    error_code=ErrorCode.HTTP_ERROR,
                    message=detail,
                    status_code=response.status_code,
                )
            )

        secret = data.get("client_secret") if isinstance(data, Mapping) else None
        if not isinstance(secret, str) or not secret:
            LOGGER.error("Create-session response did not include a client secret")
            return NegotiationFailure(
                NegotiationError(
                    error_code=ErrorCode.MISSING_CLIENT_SECRET,
                    message="Missing client secret in response",
                    status_code=response.status_code,
                )
            )

        return NegotiationSuccess(secret)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _build_client(self, settings: BrokerSettings) -> httpx.AsyncClient:
        headers = dict(settings.default_headers) if settings.default_headers else None
        return httpx.AsyncClient(timeout=settings.request_timeout, headers=headers)

    @staticmethod
    def _parse_body(raw: str) -> Any:
        if not raw:
            return {}
        try:
            return json.loads(raw)
        except ValueError as exc:
            LOGGER.error("Failed to parse create-session response: %s", exc)
            return {}

    @staticmethod
    def _status_text(response: httpx.Response) -> str:
        return response.reason_phrase or f"Request failed with status {response.status_code}"


__all__ = [
    "BrokerSettings",
    "CredentialBroker",
    "NegotiationFailure",
    "NegotiationOutcome",
    "NegotiationRequest",
    "NegotiationSuccess",
    "WORKFLOW_PLACEHOLDER_PREFIX",
    "extract_error_detail",
    "is_workflow_configured",
]
