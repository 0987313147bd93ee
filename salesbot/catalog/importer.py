"""Transform WooCommerce REST product payloads into catalog records."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Iterable, Mapping

from salesbot.catalog.models import (
    Product,
    ProductCategory,
    ProductImage,
    ProductStatus,
    StockStatus,
)

logger = logging.getLogger("salesbot.catalog.import")


def _slugify(text: str) -> str:
    return re.sub(r"\s+", "-", text.strip().lower())


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def product_from_woocommerce(raw: Mapping[str, Any], site_id: str) -> Product:
    """Build a :class:`Product` from one WooCommerce product object."""

    name = str(raw.get("name") or "Untitled Product")
    price = _to_float(raw.get("price") or raw.get("regular_price"))
    regular_price = _to_float(raw.get("regular_price") or raw.get("price"))
    sale_raw = raw.get("sale_price")
    sale_price = _to_float(sale_raw) if sale_raw not in (None, "") else None

    stock_quantity = _to_int(raw.get("stock_quantity"))
    if raw.get("stock_status"):
        stock_status = StockStatus.parse(raw["stock_status"])
    else:
        stock_status = StockStatus.IN_STOCK if stock_quantity > 0 else StockStatus.OUT_OF_STOCK

    categories = []
    for item in raw.get("categories") or []:
        if not isinstance(item, Mapping):
            continue
        category_name = str(item.get("name") or "Uncategorized")
        categories.append(
            ProductCategory(
                id=str(item.get("id") or uuid.uuid4()),
                name=category_name,
                slug=str(item.get("slug") or _slugify(category_name)),
            )
        )

    tags = []
    for tag in raw.get("tags") or []:
        value = tag if isinstance(tag, str) else (tag.get("name") if isinstance(tag, Mapping) else None)
        if value:
            tags.append(str(value))

    images = []
    for item in raw.get("images") or []:
        if not isinstance(item, Mapping):
            continue
        images.append(
            ProductImage(
                src=str(item.get("src") or item.get("url") or ""),
                alt=str(item.get("alt") or ""),
                position=_to_int(item.get("position")),
            )
        )

    return Product(
        id=str(raw.get("id") or uuid.uuid4()),
        site_id=site_id,
        name=name,
        price=price,
        description=str(raw.get("description") or ""),
        short_description=str(raw.get("short_description") or raw.get("excerpt") or ""),
        regular_price=regular_price,
        sale_price=sale_price,
        currency=str(raw.get("currency") or "USD"),
        sku=str(raw.get("sku") or ""),
        slug=str(raw.get("slug") or _slugify(name)),
        status=ProductStatus.parse(raw.get("status") or "publish"),
        stock_status=stock_status,
        stock_quantity=stock_quantity,
        categories=categories,
        tags=tags,
        images=images,
        average_rating=_to_float(raw.get("average_rating")),
        review_count=_to_int(raw.get("rating_count")),
        permalink=str(raw.get("permalink") or ""),
        related_ids=[str(item) for item in raw.get("related_ids") or []],
        created_at=raw.get("date_created"),
        updated_at=raw.get("date_modified"),
    )


def transform_products(items: Iterable[Any], site_id: str) -> tuple[list[Product], int]:
    """Transform a batch, returning the products plus the number that failed."""

    products: list[Product] = []
    failed = 0
    for item in items:
        if not isinstance(item, Mapping):
            failed += 1
            continue
        try:
            products.append(product_from_woocommerce(item, site_id))
        except Exception:  # noqa: BLE001
            logger.exception("Failed to transform product %s", item.get("id", "unknown"))
            failed += 1
    return products, failed
