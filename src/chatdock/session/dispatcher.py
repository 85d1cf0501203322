"""Client tool dispatch for tool calls issued by the remote agent.

The embedded widget awaits :meth:`ToolDispatcher.dispatch` for every client
tool call and forwards the result to the agent. The dispatcher therefore
never raises: unknown tools, bad parameters and handler failures all turn
into a negative :class:`ToolResult`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Union

from .errors import ErrorCode, ProtocolError

LOGGER = logging.getLogger(__name__)

COLOR_SCHEMES: tuple[str, ...] = ("light", "dark")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(slots=True)
class ToolInvocation:
    """A client tool call: tool name plus its parameter mapping."""

    name: str
    params: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ToolInvocation":
        params = payload.get("params")
        return cls(
            name=str(payload.get("name") or ""),
            params=params if isinstance(params, Mapping) else {},
        )


@dataclass(slots=True)
class ToolResult:
    """Outcome returned to the agent for a single invocation."""

    success: bool
    error: ProtocolError | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success}


@dataclass(frozen=True, slots=True)
class FactAction:
    """Fact handed to the persistence handler."""

    fact_id: str
    fact_text: str
    type: str = "save"


ThemeRequestHandler = Callable[[str], None]
FactHandler = Callable[[FactAction], Union[Awaitable[Any], None]]
ToolHandler = Callable[[Mapping[str, Any]], Union[ToolResult, bool, Awaitable[Union[ToolResult, bool]]]]


def normalize_fact_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim both ends."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def _coerce_param(value: Any) -> str:
    """Stringify a tool parameter the way the widget runtime would."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class ToolDispatcher:
    """Routes client tool invocations to local effect handlers.

    ``record_fact`` calls are de-duplicated by ``fact_id`` until
    :meth:`clear_processed_facts` is called (thread change or reset). The id
    is recorded before the persistence handler runs, and the handler is not
    awaited, so a slow or failing handler can never produce a second save
    for the same id.

    Example:
        dispatcher = ToolDispatcher(on_theme_request=apply_scheme, on_fact=save_fact)
        result = await dispatcher.dispatch(ToolInvocation("switch_theme", {"theme": "dark"}))
    """

    def __init__(
        self,
        *,
        on_theme_request: ThemeRequestHandler | None = None,
        on_fact: FactHandler | None = None,
    ) -> None:
        self._on_theme_request = on_theme_request
        self._on_fact = on_fact
        self._processed_fact_ids: set[str] = set()
        self._pending: set[asyncio.Future[Any]] = set()
        self._handlers: dict[str, ToolHandler] = {
            "switch_theme": self._switch_theme,
            "record_fact": self._record_fact,
        }

    @property
    def processed_fact_ids(self) -> frozenset[str]:
        return frozenset(self._processed_fact_ids)

    @property
    def tool_names(self) -> tuple[str, ...]:
        return tuple(sorted(self._handlers))

    def register(self, name: str, handler: ToolHandler) -> None:
        """Register an additional client tool by name."""

        key = name.strip()
        if not key:
            raise ValueError("Tool name is required")
        if key in self._handlers:
            raise ValueError(f"Tool '{key}' already registered")
        self._handlers[key] = handler

    def clear_processed_facts(self) -> None:
        if self._processed_fact_ids:
            LOGGER.debug("Clearing %s processed fact id(s)", len(self._processed_fact_ids))
        self._processed_fact_ids.clear()

    async def dispatch(self, invocation: ToolInvocation) -> ToolResult:
        """Run the handler registered for ``invocation.name``."""

        LOGGER.debug("Client tool invoked: %s", invocation.name)
        handler = self._handlers.get(invocation.name)
        if handler is None:
            LOGGER.warning("Ignoring unknown client tool '%s'", invocation.name)
            return ToolResult(
                success=False,
                error=ProtocolError(
                    message=f"Tool '{invocation.name}' is not supported by this client.",
                    tool_name=invocation.name,
                ),
            )

        params = invocation.params if isinstance(invocation.params, Mapping) else {}
        try:
            outcome = handler(params)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            LOGGER.exception("Client tool %s failed unexpectedly", invocation.name)
            return ToolResult(
                success=False,
                error=ProtocolError(
                    error_code=ErrorCode.HANDLER_FAILED,
                    message=str(exc),
                    tool_name=invocation.name,
                ),
            )

        if isinstance(outcome, ToolResult):
            return outcome
        return ToolResult(success=bool(outcome))

    async def drain(self) -> None:
        """Wait for in-flight fact handlers; used at shutdown and in tests."""

        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Built-in tools
    # ------------------------------------------------------------------

    def _switch_theme(self, params: Mapping[str, Any]) -> ToolResult:
        requested = params.get("theme")
        if not isinstance(requested, str) or requested not in COLOR_SCHEMES:
            return ToolResult(
                success=False,
                error=ProtocolError(
                    error_code=ErrorCode.INVALID_PARAMETER,
                    message=f"Unsupported theme {requested!r}; expected one of {COLOR_SCHEMES}.",
                    tool_name="switch_theme",
                ),
            )
        LOGGER.debug("switch_theme requested: %s", requested)
        if self._on_theme_request is not None:
            self._on_theme_request(requested)
        return ToolResult(success=True)

    def _record_fact(self, params: Mapping[str, Any]) -> ToolResult:
        fact_id = _coerce_param(params.get("fact_id"))
        fact_text = _coerce_param(params.get("fact_text"))

        if not fact_id or fact_id in self._processed_fact_ids:
            return ToolResult(success=True)

        self._processed_fact_ids.add(fact_id)
        action = FactAction(fact_id=fact_id, fact_text=normalize_fact_text(fact_text))
        self._persist_fact(action)
        return ToolResult(success=True)

    def _persist_fact(self, action: FactAction) -> None:
        if self._on_fact is None:
            return
        try:
            outcome = self._on_fact(action)
        except Exception:
            LOGGER.exception("Fact handler failed for %s", action.fact_id)
            return
        if not inspect.isawaitable(outcome):
            return
        future = asyncio.ensure_future(outcome)
        self._pending.add(future)
        future.add_done_callback(lambda done: self._on_fact_done(action, done))

    def _on_fact_done(self, action: FactAction, future: asyncio.Future[Any]) -> None:
        self._pending.discard(future)
        if future.cancelled():
            LOGGER.debug("Fact handler for %s was cancelled", action.fact_id)
            return
        exc = future.exception()
        if exc is not None:
            LOGGER.error("Fact handler failed for %s", action.fact_id, exc_info=exc)


__all__ = [
    "COLOR_SCHEMES",
    "FactAction",
    "FactHandler",
    "ThemeRequestHandler",
    "ToolDispatcher",
    "ToolHandler",
    "ToolInvocation",
    "ToolResult",
    "normalize_fact_text",
]
