"""
Extension system.
Registers extensions, runs their lifecycle and scopes their hooks.
"""

from .registry import Extension, ExtensionEntry, ExtensionInfo, ExtensionState
from .context import ScopedHooks, SharedContext
from .manager import ExtensionManager, ManagerStats
from .loader import discover_extensions, load_extensions

__all__ = [
    "Extension",
    "ExtensionEntry",
    "ExtensionInfo",
    "ExtensionState",
    "ScopedHooks",
    "SharedContext",
    "ExtensionManager",
    "ManagerStats",
    "discover_extensions",
    "load_extensions",
]
