"""Catalog-backed tools: product search and single-product lookup."""

from __future__ import annotations

import logging

from salesbot.catalog.models import SearchFilters
from salesbot.catalog.store import CatalogStore
from salesbot.responses import Action
from salesbot.tools.base import Tool, ToolContext, ToolResponse, optional_number


class SearchProductsTool(Tool):
    """Search the published catalog with optional category and price filters."""

    name = "search_products"

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog
        self._logger = logging.getLogger("salesbot.tools.products")

    async def run(self, context: ToolContext) -> ToolResponse:
        query = str(context.arguments.get("query") or "").strip()
        if not query:
            return ToolResponse(content="A search query is required.", success=False)

        category = str(context.arguments.get("category") or "").strip()
        filters = SearchFilters(
            categories=[category] if category else [],
            min_price=optional_number(context.arguments.get("minPrice")),
            max_price=optional_number(context.arguments.get("maxPrice")),
        )
        products = self._catalog.search(context.site_id, query, filters)
        self._logger.info("search_products %r on %s returned %d", query, context.site_id, len(products))

        if not products:
            return ToolResponse(
                content="No products matched that search.",
                success=False,
            )
        return ToolResponse(
            content=f"Found {len(products)} products.",
            action=Action.show_products(products),
        )


class ProductDetailsTool(Tool):
    """Look up one product by identifier."""

    name = "get_product_details"

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog

    async def run(self, context: ToolContext) -> ToolResponse:
        product_id = str(context.arguments.get("productId") or "").strip()
        if not product_id:
            return ToolResponse(content="A product id is required.", success=False)

        product = self._catalog.get_product(context.site_id, product_id)
        if product is None:
            return ToolResponse(
                content="That product could not be found.",
                success=False,
            )
        return ToolResponse(
            content=product.name,
            action=Action.show_products([product]),
        )
