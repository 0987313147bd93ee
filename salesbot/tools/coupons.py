"""Coupon generation tool delegating to the coupon issuer."""

from __future__ import annotations

from salesbot.responses import Action
from salesbot.services.coupons import CouponIssuer, CouponRequest, DiscountType
from salesbot.tools.base import Tool, ToolContext, ToolResponse, optional_number


class GenerateCouponTool(Tool):
    """Ask the coupon issuer for a discount code."""

    name = "generate_coupon"

    def __init__(self, issuer: CouponIssuer, validity_days: int = 7) -> None:
        self._issuer = issuer
        self._validity_days = validity_days

    async def run(self, context: ToolContext) -> ToolResponse:
        try:
            discount_type = DiscountType(str(context.arguments.get("discountType", "")).lower())
        except ValueError:
            return ToolResponse(content="Unsupported discount type.", success=False)

        amount = optional_number(context.arguments.get("amount"))
        if amount is None:
            return ToolResponse(content="A positive discount amount is required.", success=False)

        raw_products = context.arguments.get("products") or []
        product_ids = [str(item) for item in raw_products] if isinstance(raw_products, list) else []

        coupon = await self._issuer.issue(
            context.session_id,
            context.site_id,
            CouponRequest(
                discount_type=discount_type,
                amount=amount,
                validity_days=self._validity_days,
                product_ids=product_ids,
            ),
        )
        if coupon is None:
            return ToolResponse(content="No coupon was issued.", success=False)
        return ToolResponse(
            content=f"Coupon {coupon.code} issued.",
            action=Action.generate_coupon(coupon),
        )
