"""Post-generation policy: product attachment, coupons and termination."""

from __future__ import annotations

import logging
from typing import Sequence

from salesbot.analysis.types import PRODUCT_INTENTS, Intent, MessageAnalysis, PurchaseReadiness
from salesbot.catalog.formatting import format_product
from salesbot.catalog.models import Product
from salesbot.catalog.store import CatalogStore
from salesbot.knowledge.models import KnowledgeNode, product_ids
from salesbot.memory.models import ConversationContext
from salesbot.policy.queries import QueryProfile, classify_query
from salesbot.policy.ranking import select_products
from salesbot.responses import EnhancedResponse, GeneratedResponse
from salesbot.services.coupons import Coupon, CouponIssuer, CouponRequest, DiscountType

COUPON_CAP_PERCENT = 15.0
COUPON_VALIDITY_DAYS = 7


class ResponseEnhancer:
    """Decide which products and coupons accompany a generated reply."""

    def __init__(
        self,
        catalog: CatalogStore,
        coupons: CouponIssuer,
        *,
        coupon_cap: float = COUPON_CAP_PERCENT,
        coupon_validity_days: int = COUPON_VALIDITY_DAYS,
    ) -> None:
        self._catalog = catalog
        self._coupons = coupons
        self._coupon_cap = coupon_cap
        self._coupon_validity_days = coupon_validity_days
        self._logger = logging.getLogger("salesbot.policy")

    async def enhance(
        self,
        generated: GeneratedResponse,
        context: ConversationContext,
        analysis: MessageAnalysis,
        query: str,
        knowledge: Sequence[KnowledgeNode],
    ) -> EnhancedResponse:
        """Return the enhanced reply; on any internal error return the plain one."""

        try:
            return await self._apply(
                EnhancedResponse.from_generated(generated, analysis),
                context,
                analysis,
                query,
                knowledge,
            )
        except Exception as exc:  # noqa: BLE001
            self._logger.warning("Response enhancement failed for session %s: %s", context.session_id, exc)
            return EnhancedResponse.from_generated(generated, analysis)

    async def _apply(
        self,
        response: EnhancedResponse,
        context: ConversationContext,
        analysis: MessageAnalysis,
        query: str,
        knowledge: Sequence[KnowledgeNode],
    ) -> EnhancedResponse:
        profile = classify_query(query)

        if profile.inventory_count:
            total = self._catalog.count_published(context.site_id)
            response.metadata["total_product_count"] = total
            self._logger.info("Inventory count query for %s: %d products", context.site_id, total)
            return response

        if self.should_include_products(profile, analysis, knowledge):
            candidates = self._source_products(context, analysis, query, knowledge)
            selected = select_products(candidates, profile.product_limit)
            response.products = [format_product(product) for product in selected]

        if analysis.intent is Intent.PURCHASE_INTENT and analysis.purchase_readiness is PurchaseReadiness.READY_TO_BUY:
            response.coupons = await self._coupon_if_eligible(context)

        response.should_end_conversation = analysis.intent is Intent.GOODBYE or (
            analysis.intent is Intent.PURCHASE_INTENT and bool(response.coupons)
        )
        return response

    @staticmethod
    def should_include_products(
        profile: QueryProfile,
        analysis: MessageAnalysis,
        knowledge: Sequence[KnowledgeNode],
    ) -> bool:
        return (
            profile.asks_for_products
            or any(node.is_product for node in knowledge)
            or analysis.intent in PRODUCT_INTENTS
        )

    def _source_products(
        self,
        context: ConversationContext,
        analysis: MessageAnalysis,
        query: str,
        knowledge: Sequence[KnowledgeNode],
    ) -> list[Product]:
        site_id = context.site_id
        products: list[Product] = []

        for product_id in product_ids(knowledge):
            product = self._catalog.get_product(site_id, product_id)
            if product is not None:
                products.append(product)
        if products:
            return products

        for name in analysis.entity_list("products"):
            products.extend(self._catalog.search(site_id, name))
        for category in analysis.entity_list("categories"):
            products.extend(self._catalog.products_in_category(site_id, category))
        if products:
            return products

        if context.user_interests:
            products = self._catalog.search(site_id, " ".join(context.user_interests))
            if products:
                return products

        if query.strip():
            products = self._catalog.search(site_id, query)
            if products:
                return products

        return self._catalog.all_products(site_id, include_out_of_stock=True)

    async def _coupon_if_eligible(self, context: ConversationContext) -> list[Coupon]:
        try:
            eligibility = await self._coupons.check_eligibility(
                context.session_id,
                context.site_id,
                context.user_id,
            )
            if not eligibility.eligible:
                return []
            coupon = await self._coupons.issue(
                context.session_id,
                context.site_id,
                CouponRequest(
                    discount_type=DiscountType.PERCENTAGE,
                    amount=min(eligibility.max_discount, self._coupon_cap),
                    validity_days=self._coupon_validity_days,
                ),
            )
        except Exception:  # noqa: BLE001
            self._logger.exception("Coupon generation failed for session %s", context.session_id)
            return []
        return [coupon] if coupon else []
