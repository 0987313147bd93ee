"""Analysis-related enums and data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Intent(str, Enum):
    """Supported shopper intents."""

    GREETING = "greeting"
    PRODUCT_INQUIRY = "product_inquiry"
    PRICE_QUESTION = "price_question"
    COMPARISON = "comparison"
    PURCHASE_INTENT = "purchase_intent"
    COMPLAINT = "complaint"
    GOODBYE = "goodbye"
    UNKNOWN = "unknown"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PurchaseReadiness(str, Enum):
    RESEARCHING = "researching"
    CONSIDERING = "considering"
    READY_TO_BUY = "ready_to_buy"


PRODUCT_INTENTS = frozenset({Intent.PRODUCT_INQUIRY, Intent.COMPARISON, Intent.PURCHASE_INTENT})


@dataclass(slots=True)
class MessageAnalysis:
    """Structured reading of a single user message.

    ``extras`` keeps any additional fields a model emitted beyond the known
    schema so downstream consumers can inspect them without a schema change.
    """

    intent: Intent = Intent.UNKNOWN
    sentiment: float = 0.0
    confidence: float = 0.5
    entities: dict[str, Any] = field(default_factory=dict)
    urgency: Urgency = Urgency.MEDIUM
    purchase_readiness: PurchaseReadiness = PurchaseReadiness.RESEARCHING
    extras: dict[str, Any] = field(default_factory=dict)
    source: str = "model"

    @property
    def sentiment_label(self) -> str:
        if self.sentiment > 0:
            return "positive"
        if self.sentiment < 0:
            return "negative"
        return "neutral"

    def entity_list(self, name: str) -> list[str]:
        """Return entity values under ``name`` as a list of non-empty strings."""

        raw = self.entities.get(name)
        if raw is None:
            return []
        if isinstance(raw, (str, int, float)):
            raw = [raw]
        if not isinstance(raw, (list, tuple)):
            return []
        return [str(item).strip() for item in raw if str(item).strip()]

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extras,
            "intent": self.intent.value,
            "sentiment": self.sentiment,
            "confidence": self.confidence,
            "entities": dict(self.entities),
            "urgency": self.urgency.value,
            "purchase_readiness": self.purchase_readiness.value,
        }
