"""Catalog knowledge retrieval with a query-fingerprint cache."""

from __future__ import annotations

import base64
import logging
import re

from salesbot.catalog.store import CatalogStore
from salesbot.knowledge.models import KnowledgeNode, nodes_from_products
from salesbot.memory.store import TTLStore

logger = logging.getLogger("salesbot.knowledge")

ALL_INVENTORY_PATTERNS = (
    re.compile(r"\b(all|every|entire|complete|whole)\s+(products?|inventory|catalog|items?|laptops?|computers?)\b", re.I),
    re.compile(r"\b(show|give|list)\s+(me\s+)?(all|every|everything)\b", re.I),
    re.compile(r"\binventory\b", re.I),
)


def wants_all_inventory(query: str) -> bool:
    return any(pattern.search(query) for pattern in ALL_INVENTORY_PATTERNS)


def knowledge_cache_key(site_id: str, query: str) -> str:
    fingerprint = base64.b64encode(query.encode("utf-8")).decode("ascii")[:20]
    return f"product_knowledge:{site_id}:{fingerprint}"


class KnowledgeRetriever:
    """Turn a shopper query into product and category knowledge nodes.

    The full matching set is returned; truncation is left to the response
    policy. A catalog failure yields an empty list; a cache failure is a miss.
    """

    def __init__(self, catalog: CatalogStore, cache: TTLStore, ttl_seconds: int = 1800) -> None:
        self._catalog = catalog
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    async def retrieve(self, query: str, site_id: str) -> list[KnowledgeNode]:
        key = knowledge_cache_key(site_id, query)
        cached = await self._cached(key)
        if cached:
            return cached

        try:
            if wants_all_inventory(query):
                products = self._catalog.all_products(site_id, include_out_of_stock=True)
                logger.info("Full inventory requested for %s: %d products", site_id, len(products))
            else:
                products = self._catalog.search(site_id, query)

            if not products:
                products = self._catalog.all_products(site_id, include_out_of_stock=True)
                logger.info("No search results for %s; using full catalog (%d)", site_id, len(products))
        except Exception:  # noqa: BLE001
            logger.exception("Knowledge retrieval failed for site %s", site_id)
            return []

        nodes = nodes_from_products(products)
        try:
            await self._cache.set(key, [node.to_dict() for node in nodes], self._ttl_seconds)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Knowledge cache write failed for %s: %s", key, exc)
        return nodes

    async def _cached(self, key: str) -> list[KnowledgeNode] | None:
        try:
            cached = await self._cache.get(key)
            if not cached:
                return None
            return [KnowledgeNode.from_dict(item) for item in cached]
        except Exception as exc:  # noqa: BLE001
            logger.warning("Knowledge cache read failed for %s: %s", key, exc)
            return None
