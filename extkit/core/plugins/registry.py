"""
Extension contract and registry records.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any
from dataclasses import dataclass, field
from datetime import datetime
from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from extkit.utils.versions import is_valid_version

if TYPE_CHECKING:
    from .context import SharedContext

ExtensionConfig = dict[str, Any]


class ExtensionState(str, Enum):
    REGISTERED = "registered"
    INSTALLING = "installing"
    INSTALLED = "installed"
    UNINSTALLING = "uninstalling"
    FAILED = "failed"


class ExtensionInfo(BaseModel):
    """Extension metadata."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    version: str
    description: str = ""
    author: str = ""
    min_version: str | None = Field(
        default=None,
        description="Lowest supported host version (inclusive)",
    )
    max_version: str | None = Field(
        default=None,
        description="Highest supported host version (inclusive)",
    )
    dependencies: list[str] = Field(default_factory=list)
    default_config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("min_version", "max_version")
    @classmethod
    def validate_bound(cls, v: str | None) -> str | None:
        if v is not None and not is_valid_version(v):
            raise ValueError(f"version bound must be dotted-numeric, got {v!r}")
        return v


class Extension(ABC):
    """
    Base class for extensions.

    Only ``info`` and ``install`` are required. ``uninstall`` and
    ``update_config`` default to no-ops; override them to release resources
    or to react to configuration changes.

    Example:
    ```python
    class AuditExtension(Extension):
        info = ExtensionInfo(name="audit", version="1.0.0")

        async def install(self, context, config):
            context.hooks.register("callEnded", self.record)

        async def record(self, context, data):
            context.logger.info("call ended", call_id=data["id"])
    ```
    """

    @property
    @abstractmethod
    def info(self) -> ExtensionInfo:
        """Return extension metadata."""
        ...

    @abstractmethod
    async def install(self, context: SharedContext, config: ExtensionConfig) -> None:
        """Called when the extension is installed. Register hooks here."""
        ...

    async def uninstall(self, context: SharedContext) -> None:
        """Called before the extension is removed. Override to cleanup."""
        pass

    async def update_config(
        self,
        context: SharedContext,
        config: ExtensionConfig,
    ) -> None:
        """Called with the merged config after ``update_config``."""
        pass


@dataclass
class ExtensionEntry:
    """Internal extension registration data."""
    extension: Extension
    config: ExtensionConfig = field(default_factory=dict)
    state: ExtensionState = ExtensionState.REGISTERED
    hook_ids: list[str] = field(default_factory=list)
    installed_at: datetime | None = None
    error: BaseException | None = None

    @property
    def name(self) -> str:
        return self.extension.info.name
