"""Shared test helpers: fake session backend and fake widget handle."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import httpx

from chatdock.session.broker import BrokerSettings, CredentialBroker, NegotiationOutcome

ENDPOINT = "https://backend.test/api/create-session"


class RecordingHandler:
    """MockTransport handler returning a canned response and recording requests."""

    def __init__(self, status_code: int = 200, body: Any = None, *, raw: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        self.raw = raw
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raw is not None:
            return httpx.Response(self.status_code, text=self.raw)
        if self.body is None:
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, json=self.body)


def build_broker(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    workflow_id: str = "wf_68f0c0ffee",
    endpoint: str = ENDPOINT,
) -> CredentialBroker:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CredentialBroker(BrokerSettings(endpoint=endpoint, workflow_id=workflow_id), client=client)


class GatedBroker:
    """Broker stand-in whose negotiation waits until ``release`` is called."""

    is_configured = True

    def __init__(self, outcome: NegotiationOutcome) -> None:
        self.outcome = outcome
        self.calls: list[str | None] = []
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def negotiate(self, previous_credential: str | None = None) -> NegotiationOutcome:
        self.calls.append(previous_credential)
        await self._gate.wait()
        return self.outcome

    async def aclose(self) -> None:
        return None


class FakeControl:
    """Widget handle that records sent messages."""

    def __init__(self, *, fail: bool = False, gate: asyncio.Event | None = None) -> None:
        self.fail = fail
        self.gate = gate
        self.sent: list[tuple[str, bool]] = []

    async def send_user_message(self, text: str, *, new_thread: bool = False) -> None:
        self.sent.append((text, new_thread))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("widget refused message")
