"""Catalog store abstractions and SQLite implementation."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Sequence

import sqlite3

from salesbot.catalog.models import (
    Product,
    ProductStatus,
    SearchFilters,
    StockStatus,
)
from salesbot.core.db import sqlite_connection, table_exists

STOP_WORDS = frozenset(
    {
        "a", "an", "and", "any", "are", "as", "at", "be", "but", "by", "can", "do",
        "does", "for", "from", "have", "how", "i", "in", "is", "it", "me", "my", "of",
        "on", "or", "please", "show", "some", "that", "the", "this", "to", "what",
        "which", "with", "you", "your",
    }
)


def tokenize(text: str) -> list[str]:
    return [token for token in re.findall(r"[a-z0-9]+", text.lower()) if token not in STOP_WORDS]


def rank_key(product: Product) -> tuple[int, float, int]:
    """Sort key: in-stock first, then rating and review count descending."""

    return (0 if product.in_stock else 1, -product.average_rating, -product.review_count)


class CatalogStore(ABC):
    """Abstract read/write interface over a site's product catalog."""

    @abstractmethod
    def search(
        self,
        site_id: str,
        query: str,
        filters: SearchFilters | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Product]:
        """Return published products matching ``query``, best match first."""

    @abstractmethod
    def get_product(self, site_id: str, product_id: str) -> Product | None:
        """Return a product by identifier regardless of status."""

    @abstractmethod
    def all_products(self, site_id: str, include_out_of_stock: bool = True) -> list[Product]:
        """Return every published product for ``site_id`` sorted by name."""

    @abstractmethod
    def products_in_category(self, site_id: str, category: str) -> list[Product]:
        """Return published products whose category name or slug matches ``category``."""

    @abstractmethod
    def top_rated(self, site_id: str, limit: int = 10) -> list[Product]:
        """Return the highest rated published products."""

    @abstractmethod
    def related_products(self, site_id: str, product_id: str, limit: int = 5) -> list[Product]:
        """Return products related to ``product_id``."""

    @abstractmethod
    def on_sale(self, site_id: str, limit: int = 20) -> list[Product]:
        """Return published products currently discounted."""

    @abstractmethod
    def count_published(self, site_id: str) -> int:
        """Return the number of published products for ``site_id``."""

    @abstractmethod
    def upsert_products(self, products: Iterable[Product]) -> int:
        """Insert or replace products; return how many were written."""

    def ping(self) -> bool:
        return True


class SQLiteCatalogStore(CatalogStore):
    """SQLite-backed catalog; list-valued fields are stored as JSON columns."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with sqlite_connection(self.db_path) as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS products (
                    site_id TEXT NOT NULL,
                    id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    short_description TEXT NOT NULL DEFAULT '',
                    price REAL NOT NULL DEFAULT 0,
                    regular_price REAL,
                    sale_price REAL,
                    currency TEXT NOT NULL DEFAULT 'USD',
                    sku TEXT NOT NULL DEFAULT '',
                    slug TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'publish',
                    stock_status TEXT NOT NULL DEFAULT 'instock',
                    stock_quantity INTEGER,
                    categories TEXT NOT NULL DEFAULT '[]',
                    tags TEXT NOT NULL DEFAULT '[]',
                    images TEXT NOT NULL DEFAULT '[]',
                    average_rating REAL NOT NULL DEFAULT 0,
                    review_count INTEGER NOT NULL DEFAULT 0,
                    permalink TEXT NOT NULL DEFAULT '',
                    related_ids TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT,
                    updated_at TEXT,
                    PRIMARY KEY (site_id, id)
                );

                CREATE INDEX IF NOT EXISTS idx_products_site_status
                    ON products (site_id, status);
                """
            )

    def _published(self, site_id: str, include_out_of_stock: bool = True) -> list[Product]:
        sql = "SELECT * FROM products WHERE site_id = ? AND status = ?"
        params: list[Any] = [site_id, ProductStatus.PUBLISH.value]
        if not include_out_of_stock:
            sql += " AND stock_status != ?"
            params.append(StockStatus.OUT_OF_STOCK.value)
        sql += " ORDER BY name COLLATE NOCASE, id"
        with sqlite_connection(self.db_path) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_product(row) for row in rows]

    def search(
        self,
        site_id: str,
        query: str,
        filters: SearchFilters | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Product]:
        candidates = [
            product for product in self._published(site_id) if _matches_filters(product, filters)
        ]
        tokens = tokenize(query)

        if not query.strip():
            ordered = sorted(candidates, key=lambda product: -product.average_rating)
        elif not tokens:
            return []
        else:
            scored = [(score, product) for product in candidates if (score := _text_score(product, tokens)) > 0]
            scored.sort(key=lambda item: (-item[0], -item[1].average_rating))
            ordered = [product for _, product in scored]

        ordered = ordered[offset:]
        return ordered[:limit] if limit is not None else ordered

    def get_product(self, site_id: str, product_id: str) -> Product | None:
        with sqlite_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM products WHERE site_id = ? AND id = ?",
                (site_id, str(product_id)),
            ).fetchone()
        return _row_to_product(row) if row else None

    def all_products(self, site_id: str, include_out_of_stock: bool = True) -> list[Product]:
        return self._published(site_id, include_out_of_stock)

    def products_in_category(self, site_id: str, category: str) -> list[Product]:
        needle = category.strip().lower()
        if not needle:
            return []
        return [
            product
            for product in self._published(site_id)
            if any(
                needle in item.name.lower() or needle == item.slug.lower()
                for item in product.categories
            )
        ]

    def top_rated(self, site_id: str, limit: int = 10) -> list[Product]:
        products = [product for product in self._published(site_id) if product.review_count > 0]
        products.sort(key=lambda product: (-product.average_rating, -product.review_count))
        return products[:limit]

    def related_products(self, site_id: str, product_id: str, limit: int = 5) -> list[Product]:
        source = self.get_product(site_id, product_id)
        if source is None:
            return []

        published = [product for product in self._published(site_id) if product.id != source.id]
        if source.related_ids:
            wanted = set(source.related_ids)
            related = [product for product in published if product.id in wanted]
        else:
            categories = {name.lower() for name in source.category_names}
            related = [
                product
                for product in published
                if categories & {name.lower() for name in product.category_names}
            ]
        related.sort(key=rank_key)
        return related[:limit]

    def on_sale(self, site_id: str, limit: int = 20) -> list[Product]:
        products = [product for product in self._published(site_id) if product.on_sale]
        products.sort(key=lambda product: product.created_at or "", reverse=True)
        return products[:limit]

    def count_published(self, site_id: str) -> int:
        with sqlite_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total FROM products WHERE site_id = ? AND status = ?",
                (site_id, ProductStatus.PUBLISH.value),
            ).fetchone()
        return int(row["total"]) if row else 0

    def upsert_products(self, products: Iterable[Product]) -> int:
        rows = [_product_to_row(product) for product in products]
        if not rows:
            return 0
        columns = list(rows[0].keys())
        placeholders = ", ".join("?" for _ in columns)
        with sqlite_connection(self.db_path) as conn:
            conn.executemany(
                f"INSERT OR REPLACE INTO products ({', '.join(columns)}) VALUES ({placeholders})",
                [tuple(row[column] for column in columns) for row in rows],
            )
        return len(rows)

    def ping(self) -> bool:
        try:
            with sqlite_connection(self.db_path) as conn:
                return table_exists(conn, "products")
        except sqlite3.Error:
            return False


def _text_score(product: Product, tokens: Sequence[str]) -> int:
    name = product.name.lower()
    body = " ".join(
        [
            product.description,
            product.short_description,
            product.sku,
            " ".join(product.category_names),
            " ".join(product.tags),
        ]
    ).lower()
    score = 0
    for token in tokens:
        if token in name:
            score += 3
        if token in body:
            score += 1
    return score


def _matches_filters(product: Product, filters: SearchFilters | None) -> bool:
    if filters is None:
        return True
    if filters.categories:
        wanted = [category.lower() for category in filters.categories]
        names = [name.lower() for name in product.category_names]
        if not any(needle in name for needle in wanted for name in names):
            return False
    if filters.tags:
        tags = {tag.lower() for tag in product.tags}
        if not tags & {tag.lower() for tag in filters.tags}:
            return False
    if filters.min_price is not None and product.price < filters.min_price:
        return False
    if filters.max_price is not None and product.price > filters.max_price:
        return False
    if filters.stock_status is not None and product.stock_status is not filters.stock_status:
        return False
    if filters.min_rating is not None and product.average_rating < filters.min_rating:
        return False
    if filters.max_rating is not None and product.average_rating > filters.max_rating:
        return False
    if filters.on_sale and not product.on_sale:
        return False
    return True


def _product_to_row(product: Product) -> dict[str, Any]:
    data = product.to_dict()
    for key in ("categories", "tags", "images", "related_ids"):
        data[key] = json.dumps(data[key])
    return data


def _row_to_product(row: sqlite3.Row) -> Product:
    data = dict(row)
    for key in ("categories", "tags", "images", "related_ids"):
        data[key] = json.loads(data.get(key) or "[]")
    return Product.from_dict(data)
