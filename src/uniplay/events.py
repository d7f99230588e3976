"""Minimal event subscription primitives.

Handlers are registered per event name and receive a single payload.
Every registration returns a Subscription so the owner can dispose of
exactly the handlers it installed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Subscription:
    """Handle for one registered handler. dispose() is idempotent."""

    def __init__(self, emitter: EventEmitter, event: str, handler: Handler) -> None:
        self._emitter = emitter
        self.event = event
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        """Remove the handler from its emitter."""
        if not self._active:
            return
        self._active = False
        self._emitter._remove(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: object) -> None:
        self.dispose()


class EventEmitter:
    """Named-event dispatcher.

    Args:
        events: Allowed event names. None accepts any name.
    """

    def __init__(self, events: Iterable[str] | None = None) -> None:
        self._allowed = frozenset(events) if events is not None else None
        self._subscriptions: dict[str, list[Subscription]] = {}

    def on(self, event: str, handler: Handler) -> Subscription:
        """Register handler for event.

        Raises:
            ValueError: If event is not one of the allowed names.
        """
        if self._allowed is not None and event not in self._allowed:
            raise ValueError(
                f"Unknown event {event!r}; expected one of {sorted(self._allowed)}"
            )
        subscription = Subscription(self, event, handler)
        self._subscriptions.setdefault(event, []).append(subscription)
        return subscription

    def emit(self, event: str, payload: Any = None) -> None:
        """Call every handler registered for event.

        A failing handler is logged and does not prevent the remaining
        handlers from running.
        """
        for subscription in list(self._subscriptions.get(event, ())):
            if not subscription.active:
                continue
            try:
                subscription.handler(payload)
            except Exception:
                logger.exception("Handler for %r event failed", event)

    def listener_count(self, event: str) -> int:
        return len(self._subscriptions.get(event, ()))

    def clear(self) -> None:
        """Dispose of all subscriptions."""
        for subs in list(self._subscriptions.values()):
            for subscription in list(subs):
                subscription.dispose()

    def _remove(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.event)
        if subs and subscription in subs:
            subs.remove(subscription)
