"""Candidate de-duplication and ranking."""

from __future__ import annotations

from typing import Iterable

from salesbot.catalog.models import Product
from salesbot.catalog.store import rank_key


def dedupe_products(products: Iterable[Product]) -> list[Product]:
    seen: set[str] = set()
    unique: list[Product] = []
    for product in products:
        if product.id in seen:
            continue
        seen.add(product.id)
        unique.append(product)
    return unique


def rank_products(products: Iterable[Product]) -> list[Product]:
    """Stable sort: in-stock first, then higher rating, then more reviews."""

    return sorted(products, key=rank_key)


def select_products(products: Iterable[Product], limit: int) -> list[Product]:
    return rank_products(dedupe_products(products))[:limit]
