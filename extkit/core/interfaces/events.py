"""
Outbound notification channel.

The extension manager reports lifecycle changes through an ``EventEmitter``.
Emission is fire-and-forget: the manager does not wait on subscribers and a
failing emitter never changes a lifecycle outcome.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from fnmatch import fnmatchcase
from typing import Any, Callable, Protocol, runtime_checkable
import logging
import uuid

from extkit.utils.timezone import utc_now

logger = logging.getLogger(__name__)


class ExtensionEvents:
    """Notification types emitted by the extension manager."""
    INSTALLED = "extension:installed"
    ERROR = "extension:error"
    UNREGISTERED = "extension:unregistered"
    CONFIG_UPDATED = "extension:configUpdated"


@dataclass
class Event:
    """Base event structure."""
    type: str  # e.g., "extension:installed"
    data: dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=utc_now)


EventHandler = Callable[[Event], None]


@runtime_checkable
class EventEmitter(Protocol):
    """Anything the manager can push notifications into."""

    def emit(self, event_type: str, data: dict[str, Any]) -> None:
        ...


@dataclass
class Subscription:
    """Event subscription info."""
    id: str
    pattern: str  # Event type pattern (supports wildcards)
    handler: EventHandler


class InMemoryEventBus:
    """
    Synchronous in-process event bus.

    Subscribers are called in subscription order. A subscriber that raises
    is logged and does not prevent delivery to the others.

    Pattern examples:
    - "extension:installed" - exact match
    - "extension:*" - all extension events
    - "*" - all events

    Example:
    ```python
    bus = InMemoryEventBus()
    bus.subscribe("extension:*", lambda event: print(event.type))
    manager = ExtensionManager(bus, version="1.4.0")
    ```
    """

    def __init__(self, history_size: int = 100):
        self._subscriptions: dict[str, Subscription] = {}
        self._history: deque[Event] = deque(maxlen=history_size)

    def emit(self, event_type: str, data: dict[str, Any]) -> None:
        """Publish an event to every matching subscriber."""
        event = Event(type=event_type, data=data)
        self._history.append(event)

        for sub in list(self._subscriptions.values()):
            if not fnmatchcase(event_type, sub.pattern):
                continue
            try:
                sub.handler(event)
            except Exception:
                logger.exception(f"Event handler error: {event_type} ({sub.id})")

    def subscribe(self, pattern: str, handler: EventHandler) -> Subscription:
        """Subscribe to events matching pattern."""
        sub = Subscription(id=str(uuid.uuid4()), pattern=pattern, handler=handler)
        self._subscriptions[sub.id] = sub
        return sub

    def unsubscribe(self, subscription_id: str) -> bool:
        """Unsubscribe from events."""
        return self._subscriptions.pop(subscription_id, None) is not None

    def history(self, pattern: str = "*") -> list[Event]:
        """Recently emitted events matching pattern, oldest first."""
        return [e for e in self._history if fnmatchcase(e.type, pattern)]

    def clear(self) -> None:
        """Drop history and subscriptions (for testing)."""
        self._history.clear()
        self._subscriptions.clear()
