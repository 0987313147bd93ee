import asyncio

import pytest

from salesbot.analysis.types import Intent, MessageAnalysis, PurchaseReadiness
from salesbot.catalog.models import StockStatus
from salesbot.knowledge.models import nodes_from_products
from salesbot.memory.models import ConversationContext
from salesbot.policy.enhancer import ResponseEnhancer
from salesbot.responses import GeneratedResponse
from salesbot.services.coupons import InMemoryCouponIssuer


class ExplodingCatalog:
    def __getattr__(self, name):
        def explode(*args, **kwargs):
            raise RuntimeError(f"{name} failed")

        return explode


@pytest.fixture
def big_catalog(catalog, make_product):
    brands = ["ASUS", "MSI", "Lenovo", "HP"]
    catalog.upsert_products(
        [
            make_product(
                str(index),
                name=f"{brands[index % 4]} Laptop {index}",
                rating=3.0 + (index % 5) * 0.4,
                reviews=index,
                stock=StockStatus.OUT_OF_STOCK if index < 5 else StockStatus.IN_STOCK,
            )
            for index in range(20)
        ]
    )
    return catalog


def context(session_id="sess-1"):
    return ConversationContext(session_id=session_id, site_id="S1")


def generated():
    return GeneratedResponse(text="Here are some options.", token_usage=12, model="fake-model")


def enhance(catalog, analysis, query, knowledge=(), issuer=None, session_id="sess-1"):
    enhancer = ResponseEnhancer(catalog, issuer or InMemoryCouponIssuer(max_discount=20))
    return asyncio.run(enhancer.enhance(generated(), context(session_id), analysis, query, list(knowledge)))


def ready_buyer():
    return MessageAnalysis(intent=Intent.PURCHASE_INTENT, purchase_readiness=PurchaseReadiness.READY_TO_BUY)


def test_inventory_count_short_circuits(big_catalog):
    knowledge = nodes_from_products(big_catalog.all_products("S1"))

    response = enhance(big_catalog, ready_buyer(), "How many laptops do you have?", knowledge)

    assert response.metadata["total_product_count"] == 20
    assert response.products == []
    assert response.coupons == []
    assert response.should_end_conversation is False


def test_show_all_returns_twelve_in_stock_products(big_catalog):
    knowledge = nodes_from_products(big_catalog.all_products("S1"))

    response = enhance(big_catalog, MessageAnalysis(intent=Intent.PRODUCT_INQUIRY), "show me all products", knowledge)

    assert len(response.products) == 12
    assert all(product["in_stock"] for product in response.products)
    ratings = [product["rating"] for product in response.products]
    assert ratings == sorted(ratings, reverse=True)


@pytest.mark.parametrize(
    "query, limit",
    [
        ("anything from asus?", 3),
        ("recommend laptop for travel", 6),
    ],
)
def test_product_limits(big_catalog, query, limit):
    knowledge = nodes_from_products(big_catalog.all_products("S1"))

    response = enhance(big_catalog, MessageAnalysis(intent=Intent.PRODUCT_INQUIRY), query, knowledge)

    assert len(response.products) == limit


def test_no_products_without_product_signal(big_catalog):
    response = enhance(big_catalog, MessageAnalysis(intent=Intent.GREETING), "hello", [])

    assert response.products == []


def test_entities_used_when_knowledge_empty(laptop_catalog):
    analysis = MessageAnalysis(intent=Intent.COMPARISON, entities={"products": ["Zenbook"]})

    response = enhance(laptop_catalog, analysis, "is it good?", [])

    assert [product["name"] for product in response.products] == ["ASUS Zenbook 14"]


def test_category_entities(laptop_catalog):
    analysis = MessageAnalysis(intent=Intent.PRODUCT_INQUIRY, entities={"categories": ["Accessories"]})

    response = enhance(laptop_catalog, analysis, "what else?", [])

    assert [product["name"] for product in response.products] == ["HP Pavilion Mouse"]


def test_full_catalog_is_last_resort(laptop_catalog):
    response = enhance(laptop_catalog, MessageAnalysis(intent=Intent.PRODUCT_INQUIRY), "submarine", [])

    assert len(response.products) == 4
    assert response.products[-1]["in_stock"] is False


def test_ready_buyer_gets_capped_coupon_and_conversation_ends(laptop_catalog):
    response = enhance(laptop_catalog, ready_buyer(), "I'll take it", [])

    assert len(response.coupons) == 1
    assert response.coupons[0].amount == 15
    assert response.should_end_conversation is True


def test_coupon_requires_ready_to_buy(laptop_catalog):
    analysis = MessageAnalysis(intent=Intent.PURCHASE_INTENT, purchase_readiness=PurchaseReadiness.CONSIDERING)

    response = enhance(laptop_catalog, analysis, "maybe I'll order", [])

    assert response.coupons == []
    assert response.should_end_conversation is False


def test_ineligible_session_gets_no_coupon(laptop_catalog):
    issuer = InMemoryCouponIssuer(max_discount=20)
    first = enhance(laptop_catalog, ready_buyer(), "buy now", [], issuer=issuer)
    second = enhance(laptop_catalog, ready_buyer(), "buy now", [], issuer=issuer)

    assert len(first.coupons) == 1
    assert second.coupons == []
    assert second.should_end_conversation is False


def test_goodbye_ends_conversation(laptop_catalog):
    response = enhance(laptop_catalog, MessageAnalysis(intent=Intent.GOODBYE), "bye", [])

    assert response.should_end_conversation is True


def test_enhancement_failure_returns_plain_reply():
    response = enhance(ExplodingCatalog(), MessageAnalysis(intent=Intent.PRODUCT_INQUIRY), "show me all products", [])

    assert response.message == "Here are some options."
    assert response.products == []
    assert response.metadata == {"token_usage": 12, "model": "fake-model"}
