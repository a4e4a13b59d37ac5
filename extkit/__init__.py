"""
extkit: in-process extension lifecycle and hook dispatch.
"""

from extkit.core.errors import (
    DependencyError,
    ExtensionAlreadyRegisteredError,
    ExtensionError,
    ExtensionNotFoundError,
    HookAbortError,
    IncompatibleVersionError,
)
from extkit.core.hooks import HookManager, HookOptions, HookPriority, hookable
from extkit.core.interfaces import InMemoryEventBus
from extkit.core.plugins import (
    Extension,
    ExtensionInfo,
    ExtensionManager,
    ExtensionState,
    SharedContext,
)

__version__ = "0.1.0"

__all__ = [
    "DependencyError",
    "Extension",
    "ExtensionAlreadyRegisteredError",
    "ExtensionError",
    "ExtensionInfo",
    "ExtensionManager",
    "ExtensionNotFoundError",
    "ExtensionState",
    "HookAbortError",
    "HookManager",
    "HookOptions",
    "HookPriority",
    "IncompatibleVersionError",
    "InMemoryEventBus",
    "SharedContext",
    "hookable",
]
