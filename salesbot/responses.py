"""Per-turn response types shared by the generator, policy and engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from salesbot.analysis.types import Intent, MessageAnalysis
from salesbot.catalog.formatting import format_product
from salesbot.catalog.models import Product
from salesbot.services.coupons import Coupon


class ActionType(str, Enum):
    SHOW_PRODUCTS = "show_products"
    GENERATE_COUPON = "generate_coupon"
    TRANSFER_HUMAN = "transfer_human"


@dataclass(slots=True)
class Action:
    """Tagged action attached to a reply; build through the constructors."""

    type: ActionType
    products: list[Product] = field(default_factory=list)
    coupon: Coupon | None = None
    reason: str | None = None

    @classmethod
    def show_products(cls, products: Sequence[Product]) -> "Action":
        if not products:
            raise ValueError("show_products requires at least one product")
        return cls(type=ActionType.SHOW_PRODUCTS, products=list(products))

    @classmethod
    def generate_coupon(cls, coupon: Coupon) -> "Action":
        return cls(type=ActionType.GENERATE_COUPON, coupon=coupon)

    @classmethod
    def transfer_human(cls, reason: str) -> "Action":
        if not reason or not reason.strip():
            raise ValueError("transfer_human requires a reason")
        return cls(type=ActionType.TRANSFER_HUMAN, reason=reason.strip())

    def payload(self) -> dict[str, Any]:
        if self.type is ActionType.SHOW_PRODUCTS:
            return {"products": [format_product(product) for product in self.products]}
        if self.type is ActionType.GENERATE_COUPON and self.coupon is not None:
            return {"coupon": self.coupon.to_dict()}
        return {"reason": self.reason}

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "payload": self.payload()}


@dataclass(slots=True)
class GeneratedResponse:
    text: str
    actions: list[Action] = field(default_factory=list)
    token_usage: int = 0
    model: str = ""


@dataclass(slots=True)
class EnhancedResponse:
    """The single reply produced for every inbound message."""

    message: str
    intent: Intent = Intent.UNKNOWN
    confidence: float = 0.0
    sentiment: float = 0.0
    actions: list[Action] = field(default_factory=list)
    products: list[dict[str, Any]] = field(default_factory=list)
    coupons: list[Coupon] = field(default_factory=list)
    should_end_conversation: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_fallback(self) -> bool:
        return bool(self.metadata.get("fallback"))

    @classmethod
    def from_generated(cls, generated: GeneratedResponse, analysis: MessageAnalysis) -> "EnhancedResponse":
        return cls(
            message=generated.text,
            intent=analysis.intent,
            confidence=analysis.confidence,
            sentiment=analysis.sentiment,
            actions=list(generated.actions),
            metadata={"token_usage": generated.token_usage, "model": generated.model},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "intent": self.intent.value,
            "confidence": self.confidence,
            "sentiment": self.sentiment,
            "actions": [action.to_dict() for action in self.actions],
            "products": list(self.products),
            "coupons": [coupon.to_dict() for coupon in self.coupons],
            "should_end_conversation": self.should_end_conversation,
            "metadata": dict(self.metadata),
        }
