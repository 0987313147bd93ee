"""Base classes and types for model-invocable tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping

from salesbot.responses import Action


@dataclass(slots=True)
class ToolContext:
    """Session scope and decoded arguments for a tool invocation."""

    session_id: str
    site_id: str
    user_id: str | None = None
    arguments: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ToolResponse:
    """Standard tool response payload."""

    content: str
    success: bool = True
    action: Action | None = None


class Tool(ABC):
    """Executable tool implementation interface."""

    name: str

    @abstractmethod
    async def run(self, context: ToolContext) -> ToolResponse:
        """Execute the tool given the provided context."""


def optional_number(value: Any) -> float | None:
    """Return a positive number from a model-supplied argument, else ``None``."""

    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None
