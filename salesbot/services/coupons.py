"""Coupon issuing collaborator and the built-in in-process implementation."""

from __future__ import annotations

import asyncio
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable

from salesbot.memory.models import utcnow

logger = logging.getLogger("salesbot.coupons")


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_CART = "fixed_cart"


@dataclass(slots=True)
class Eligibility:
    eligible: bool
    max_discount: float = 0.0


@dataclass(slots=True)
class CouponRequest:
    discount_type: DiscountType
    amount: float
    validity_days: int = 7
    product_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Coupon:
    code: str
    discount_type: DiscountType
    amount: float
    expires_at: datetime
    session_id: str
    site_id: str
    product_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "discount_type": self.discount_type.value,
            "amount": self.amount,
            "expires_at": self.expires_at.isoformat(),
            "session_id": self.session_id,
            "site_id": self.site_id,
            "product_ids": list(self.product_ids),
        }


class CouponIssuer(ABC):
    """Decides coupon eligibility and issues codes."""

    @abstractmethod
    async def check_eligibility(self, session_id: str, site_id: str, user_id: str | None = None) -> Eligibility:
        """Return whether the session may receive a coupon and the largest allowed discount."""

    @abstractmethod
    async def issue(self, session_id: str, site_id: str, request: CouponRequest) -> Coupon | None:
        """Issue a coupon, or return ``None`` when the request is declined."""


class InMemoryCouponIssuer(CouponIssuer):
    """Issues at most one live coupon per session with a configurable discount ceiling.

    Expired coupons are forgotten, after which the session may earn a new one.
    """

    def __init__(
        self,
        max_discount: float = 20.0,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._max_discount = max_discount
        self._clock = clock
        self._issued: dict[tuple[str, str], Coupon] = {}
        self._lock = asyncio.Lock()

    async def check_eligibility(self, session_id: str, site_id: str, user_id: str | None = None) -> Eligibility:
        self._evict_expired()
        if (site_id, session_id) in self._issued or self._max_discount <= 0:
            return Eligibility(eligible=False, max_discount=0.0)
        return Eligibility(eligible=True, max_discount=self._max_discount)

    async def issue(self, session_id: str, site_id: str, request: CouponRequest) -> Coupon | None:
        if request.amount <= 0:
            return None

        amount = request.amount
        if request.discount_type is DiscountType.PERCENTAGE:
            amount = min(amount, self._max_discount)

        async with self._lock:
            self._evict_expired()
            if (site_id, session_id) in self._issued:
                logger.info("Coupon already issued for session %s", session_id)
                return None
            coupon = Coupon(
                code=f"SAVE{int(amount)}-{secrets.token_hex(3).upper()}",
                discount_type=request.discount_type,
                amount=amount,
                expires_at=self._clock() + timedelta(days=request.validity_days),
                session_id=session_id,
                site_id=site_id,
                product_ids=list(request.product_ids),
            )
            self._issued[(site_id, session_id)] = coupon

        logger.info("Issued coupon %s for session %s", coupon.code, session_id)
        return coupon

    def issued_for(self, site_id: str, session_id: str) -> Coupon | None:
        return self._issued.get((site_id, session_id))

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [key for key, coupon in self._issued.items() if coupon.expires_at <= now]
        for key in expired:
            del self._issued[key]
