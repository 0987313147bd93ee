"""Message analyzer abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from salesbot.memory.models import ConversationContext

from .types import MessageAnalysis


class MessageAnalyzer(ABC):
    """Turns raw user text into a structured analysis."""

    @abstractmethod
    async def analyze(self, message: str, context: ConversationContext) -> MessageAnalysis:
        """Return the analysis for ``message`` given the session context."""
