"""Catalog record dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

PLACEHOLDER_IMAGE = "/wp-content/uploads/woocommerce-placeholder.png"


class StockStatus(str, Enum):
    IN_STOCK = "instock"
    OUT_OF_STOCK = "outofstock"
    ON_BACKORDER = "onbackorder"

    @classmethod
    def parse(cls, value: Any) -> "StockStatus":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.IN_STOCK


class ProductStatus(str, Enum):
    PUBLISH = "publish"
    DRAFT = "draft"
    PRIVATE = "private"

    @classmethod
    def parse(cls, value: Any) -> "ProductStatus":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.PUBLISH


@dataclass(slots=True)
class ProductCategory:
    id: str
    name: str
    slug: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "slug": self.slug}


@dataclass(slots=True)
class ProductImage:
    src: str
    alt: str = ""
    position: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"src": self.src, "alt": self.alt, "position": self.position}


@dataclass(slots=True)
class Product:
    """A storefront product as held in the local catalog."""

    id: str
    site_id: str
    name: str
    price: float
    description: str = ""
    short_description: str = ""
    regular_price: float | None = None
    sale_price: float | None = None
    currency: str = "USD"
    sku: str = ""
    slug: str = ""
    status: ProductStatus = ProductStatus.PUBLISH
    stock_status: StockStatus = StockStatus.IN_STOCK
    stock_quantity: int | None = None
    categories: list[ProductCategory] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    images: list[ProductImage] = field(default_factory=list)
    average_rating: float = 0.0
    review_count: int = 0
    permalink: str = ""
    related_ids: list[str] = field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def in_stock(self) -> bool:
        return self.stock_status is StockStatus.IN_STOCK

    @property
    def category_names(self) -> list[str]:
        return [category.name for category in self.categories]

    @property
    def effective_regular_price(self) -> float:
        return self.regular_price if self.regular_price else self.price

    @property
    def effective_sale_price(self) -> float | None:
        return self.sale_price if self.sale_price and self.sale_price > 0 else None

    @property
    def on_sale(self) -> bool:
        sale = self.effective_sale_price
        return sale is not None and sale < self.effective_regular_price

    @property
    def image_url(self) -> str | None:
        return self.images[0].src if self.images else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "site_id": self.site_id,
            "name": self.name,
            "description": self.description,
            "short_description": self.short_description,
            "price": self.price,
            "regular_price": self.regular_price,
            "sale_price": self.sale_price,
            "currency": self.currency,
            "sku": self.sku,
            "slug": self.slug,
            "status": self.status.value,
            "stock_status": self.stock_status.value,
            "stock_quantity": self.stock_quantity,
            "categories": [category.to_dict() for category in self.categories],
            "tags": list(self.tags),
            "images": [image.to_dict() for image in self.images],
            "average_rating": self.average_rating,
            "review_count": self.review_count,
            "permalink": self.permalink,
            "related_ids": list(self.related_ids),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Product":
        return cls(
            id=str(data["id"]),
            site_id=str(data["site_id"]),
            name=str(data.get("name") or ""),
            price=float(data.get("price") or 0.0),
            description=str(data.get("description") or ""),
            short_description=str(data.get("short_description") or ""),
            regular_price=_optional_float(data.get("regular_price")),
            sale_price=_optional_float(data.get("sale_price")),
            currency=str(data.get("currency") or "USD"),
            sku=str(data.get("sku") or ""),
            slug=str(data.get("slug") or ""),
            status=ProductStatus.parse(data.get("status", "publish")),
            stock_status=StockStatus.parse(data.get("stock_status", "instock")),
            stock_quantity=data.get("stock_quantity"),
            categories=[
                ProductCategory(
                    id=str(item.get("id", "")),
                    name=str(item.get("name", "")),
                    slug=str(item.get("slug", "")),
                )
                for item in data.get("categories") or []
            ],
            tags=[str(tag) for tag in data.get("tags") or []],
            images=[
                ProductImage(
                    src=str(item.get("src", "")),
                    alt=str(item.get("alt", "")),
                    position=int(item.get("position", 0)),
                )
                for item in data.get("images") or []
            ],
            average_rating=float(data.get("average_rating") or 0.0),
            review_count=int(data.get("review_count") or 0),
            permalink=str(data.get("permalink") or ""),
            related_ids=[str(item) for item in data.get("related_ids") or []],
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass(slots=True)
class SearchFilters:
    """Optional narrowing applied on top of a text search."""

    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    min_price: float | None = None
    max_price: float | None = None
    stock_status: StockStatus | None = None
    min_rating: float | None = None
    max_rating: float | None = None
    on_sale: bool | None = None


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
