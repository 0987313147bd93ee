"""Completion provider interface and request/result types."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class CompletionError(RuntimeError):
    """Raised when the completion provider cannot produce a reply."""


@dataclass(slots=True)
class DialogueTurn:
    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(slots=True)
class FunctionSpec:
    """Callable action advertised to the model."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_tool(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def describe(self) -> str:
        return f"Function: {self.name} - {self.description}"


@dataclass(slots=True)
class FunctionCall:
    """Function invocation returned by the model; ``arguments`` is raw JSON text."""

    name: str
    arguments: str = "{}"


@dataclass(slots=True)
class CompletionRequest:
    system_prompt: str
    messages: list[DialogueTurn] = field(default_factory=list)
    functions: list[FunctionSpec] = field(default_factory=list)
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass(slots=True)
class CompletionResult:
    content: str
    function_call: FunctionCall | None = None
    total_tokens: int = 0
    model: str = ""


class CompletionProvider(ABC):
    """Chat completion backend."""

    model: str

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResult:
        """Return the model reply or raise :class:`CompletionError`."""

    @property
    def enabled(self) -> bool:
        return True

    async def close(self) -> None:
        """Release network resources."""
