"""
Core interfaces (protocols) the engine talks to.
"""

from .events import (
    Event,
    EventEmitter,
    ExtensionEvents,
    InMemoryEventBus,
    Subscription,
)

__all__ = [
    "Event",
    "EventEmitter",
    "ExtensionEvents",
    "InMemoryEventBus",
    "Subscription",
]
