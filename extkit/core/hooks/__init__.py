"""
Hook system for extension points.
Lets extensions tap into host events in priority order.
"""

from .manager import (
    HookManager,
    HookOptions,
    HookPriority,
    HookRegistration,
    HookStats,
)
from .decorators import hookable

__all__ = [
    "HookManager",
    "HookOptions",
    "HookPriority",
    "HookRegistration",
    "HookStats",
    "hookable",
]
