"""Post-commit side effects.

Services emit an event only after their primary write has been stored.
Handlers run in subscription order; a failing handler is logged and
reported in the returned outcomes but never undoes the write or stops the
remaining handlers. Nothing is retried.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional


logger = logging.getLogger("uvicorn.error")

PTO_REQUEST_CREATED = "pto_request.created"
PTO_REQUEST_UPDATED = "pto_request.updated"
PTO_REQUEST_APPROVED = "pto_request.approved"
PTO_REQUEST_DECLINED = "pto_request.declined"
PTO_REQUEST_DELETED = "pto_request.deleted"

Handler = Callable[[dict], Awaitable[Any]]


@dataclass
class EffectOutcome:
    event: str
    handler: str
    ok: bool
    error: Optional[str] = None


class PostCommitEvents:
    def __init__(self) -> None:
        self._handlers: dict[str, list[tuple[str, Handler]]] = {}

    def subscribe(self, event: str, handler: Handler, name: Optional[str] = None) -> None:
        label = name or getattr(handler, "__qualname__", repr(handler))
        self._handlers.setdefault(event, []).append((label, handler))

    def handlers(self, event: str) -> list[str]:
        return [name for name, _ in self._handlers.get(event, [])]

    async def emit(self, event: str, payload: dict) -> list[EffectOutcome]:
        outcomes: list[EffectOutcome] = []
        for name, handler in self._handlers.get(event, []):
            try:
                await handler(payload)
                outcomes.append(EffectOutcome(event, name, True))
            except Exception as exc:
                logger.error("Post-commit effect %s for %s failed: %s", name, event, exc)
                outcomes.append(EffectOutcome(event, name, False, str(exc)))
        return outcomes
