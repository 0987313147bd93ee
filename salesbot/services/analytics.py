"""Per-turn interaction telemetry."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from salesbot.memory.models import utcnow


@dataclass(slots=True)
class InteractionEvent:
    session_id: str
    site_id: str
    intent: str
    sentiment: float
    confidence: float
    response_time_ms: float
    token_usage: int = 0
    fallback: bool = False
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class AnalyticsSink(ABC):
    """One-way destination for interaction events."""

    @abstractmethod
    async def track_interaction(self, event: InteractionEvent) -> None:
        """Record ``event``; callers ignore failures."""


class LoggingAnalyticsSink(AnalyticsSink):
    """Write interaction events to the ``salesbot.analytics`` logger."""

    def __init__(self) -> None:
        self._logger = logging.getLogger("salesbot.analytics")

    async def track_interaction(self, event: InteractionEvent) -> None:
        self._logger.info(
            "interaction session=%s site=%s intent=%s sentiment=%.2f confidence=%.2f latency_ms=%.1f tokens=%d fallback=%s",
            event.session_id,
            event.site_id,
            event.intent,
            event.sentiment,
            event.confidence,
            event.response_time_ms,
            event.token_usage,
            event.fallback,
        )
