"""Dataclasses representing conversation turns and per-session state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return utcnow()


@dataclass(slots=True)
class ChatMessage:
    """Single transcript entry supplied by the caller or cached with the context."""

    role: str
    content: str
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def is_user(self) -> bool:
        return self.role == "user"

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChatMessage":
        # Storefront widgets send {"type": "user" | "bot"}; normalise to user/assistant.
        raw_role = str(data.get("role") or data.get("type") or "user").lower()
        role = "user" if raw_role == "user" else "assistant"
        content = data.get("content")
        if content is None:
            content = data.get("message", "")
        return cls(
            role=role,
            content=str(content),
            timestamp=_parse_timestamp(data.get("timestamp") or data.get("created_at")),
        )


@dataclass(slots=True)
class PriceRange:
    min: float
    max: float

    def to_dict(self) -> dict[str, float]:
        return {"min": self.min, "max": self.max}


@dataclass(slots=True)
class ProductPreferences:
    """Preference profile derived from user-authored messages."""

    categories: list[str] = field(default_factory=list)
    price_range: PriceRange | None = None
    features: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "categories": list(self.categories),
            "price_range": self.price_range.to_dict() if self.price_range else None,
            "features": list(self.features),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ProductPreferences":
        data = data or {}
        raw_range = data.get("price_range")
        price_range = None
        if isinstance(raw_range, Mapping) and "min" in raw_range and "max" in raw_range:
            price_range = PriceRange(min=float(raw_range["min"]), max=float(raw_range["max"]))
        return cls(
            categories=list(data.get("categories") or []),
            price_range=price_range,
            features=list(data.get("features") or []),
        )


@dataclass(slots=True)
class ConversationContext:
    """Per-session conversational state kept in the TTL cache."""

    session_id: str
    site_id: str
    user_id: str | None = None
    previous_messages: list[ChatMessage] = field(default_factory=list)
    user_interests: list[str] = field(default_factory=list)
    product_preferences: ProductPreferences = field(default_factory=ProductPreferences)
    sentiment_history: list[float] = field(default_factory=list)
    current_intent: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "site_id": self.site_id,
            "user_id": self.user_id,
            "previous_messages": [message.to_dict() for message in self.previous_messages],
            "user_interests": list(self.user_interests),
            "product_preferences": self.product_preferences.to_dict(),
            "sentiment_history": list(self.sentiment_history),
            "current_intent": self.current_intent,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversationContext":
        return cls(
            session_id=str(data["session_id"]),
            site_id=str(data["site_id"]),
            user_id=data.get("user_id"),
            previous_messages=[ChatMessage.from_dict(item) for item in data.get("previous_messages") or []],
            user_interests=list(data.get("user_interests") or []),
            product_preferences=ProductPreferences.from_dict(data.get("product_preferences")),
            sentiment_history=[float(score) for score in data.get("sentiment_history") or []],
            current_intent=data.get("current_intent"),
        )


@dataclass(slots=True)
class TurnRequest:
    """Inbound user message for a single turn."""

    session_id: str
    site_id: str
    message: str
    user_id: str | None = None
    previous_messages: list[ChatMessage] = field(default_factory=list)
