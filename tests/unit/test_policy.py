import pytest

from salesbot.catalog.models import StockStatus
from salesbot.policy.queries import QUERY_PREDICATES, classify_query
from salesbot.policy.ranking import dedupe_products, rank_products, select_products


def test_predicates_are_ordered_with_inventory_count_first():
    assert [name for name, _ in QUERY_PREDICATES] == [
        "inventory_count",
        "show_all",
        "specific_brand",
        "product_request",
    ]


@pytest.mark.parametrize(
    "query, limit, asks",
    [
        ("show me all products", 12, True),
        ("display the entire catalog", 12, True),
        ("do you have any asus models?", 3, True),
        ("recommend laptop for school", 6, True),
        ("what's your return policy?", 6, False),
    ],
)
def test_query_profile_limits(query, limit, asks):
    profile = classify_query(query)

    assert profile.product_limit == limit
    assert profile.asks_for_products is asks


def test_inventory_count_detection():
    assert classify_query("How many laptops do you have?").inventory_count
    assert classify_query("total products in stock").inventory_count
    assert not classify_query("how many days for delivery").inventory_count


def test_show_all_beats_brand_for_limit():
    profile = classify_query("show all laptops from msi")

    assert profile.show_all and profile.specific_brand
    assert profile.product_limit == 12


def test_rank_puts_in_stock_first_then_rating(make_product):
    products = [
        make_product("oos", rating=5.0, stock=StockStatus.OUT_OF_STOCK),
        make_product("low", rating=3.0),
        make_product("high", rating=4.5, reviews=5),
        make_product("high-more-reviews", rating=4.5, reviews=50),
    ]

    assert [product.id for product in rank_products(products)] == ["high-more-reviews", "high", "low", "oos"]


def test_ranking_is_idempotent(make_product):
    products = [make_product(str(index), rating=index % 5) for index in range(10)]
    once = rank_products(products)

    assert rank_products(once) == once


def test_dedupe_keeps_first_occurrence(make_product):
    first = make_product("1", name="First")
    products = dedupe_products([first, make_product("1", name="Second"), make_product("2")])

    assert [product.name for product in products] == ["First", "Product 2"]


def test_select_products_truncates_after_ranking(make_product):
    products = [make_product(str(index), rating=index) for index in range(6)]

    assert [product.id for product in select_products(products, 3)] == ["5", "4", "3"]
