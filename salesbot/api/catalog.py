"""API routes for direct catalog access."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from salesbot.catalog.formatting import format_product
from salesbot.catalog.models import SearchFilters
from salesbot.catalog.store import CatalogStore


def create_catalog_router(catalog: CatalogStore) -> APIRouter:
    router = APIRouter(prefix="/catalog", tags=["catalog"])

    @router.get("/search")
    async def search_endpoint(
        site_id: str | None = None,
        query: str | None = None,
        category: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        on_sale: bool | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> dict:
        if not site_id:
            raise HTTPException(status_code=400, detail="site_id parameter is required")

        filters = SearchFilters(
            categories=[category] if category else [],
            min_price=min_price,
            max_price=max_price,
            on_sale=on_sale,
        )
        products = catalog.search(site_id, query or "", filters, limit=max(1, min(limit, 100)), offset=max(0, offset))
        return {"count": len(products), "results": [format_product(product) for product in products]}

    @router.get("/{site_id}/products/{product_id}")
    async def product_endpoint(site_id: str, product_id: str) -> dict:
        product = catalog.get_product(site_id, product_id)
        if product is None:
            raise HTTPException(status_code=404, detail="product not found")
        related = catalog.related_products(site_id, product_id)
        return format_product(product) | {"related": [format_product(item) for item in related]}

    @router.get("/{site_id}/top-rated")
    async def top_rated_endpoint(site_id: str, limit: int = 10) -> dict:
        products = catalog.top_rated(site_id, limit=max(1, min(limit, 50)))
        return {"results": [format_product(product) for product in products]}

    @router.get("/{site_id}/on-sale")
    async def on_sale_endpoint(site_id: str, limit: int = 20) -> dict:
        products = catalog.on_sale(site_id, limit=max(1, min(limit, 50)))
        return {"results": [format_product(product) for product in products]}

    @router.get("/{site_id}/count")
    async def count_endpoint(site_id: str) -> dict:
        return {"site_id": site_id, "total": catalog.count_published(site_id)}

    return router
