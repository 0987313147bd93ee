"""Knowledge node types surfaced to the language model as grounding."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from salesbot.catalog.models import Product

PRODUCT_SCORE = 1.0
CATEGORY_SCORE = 0.8


class NodeType(str, Enum):
    PRODUCT = "product"
    CATEGORY = "category"


@dataclass(slots=True)
class KnowledgeNode:
    id: str
    type: NodeType
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    score: float = PRODUCT_SCORE

    @property
    def is_product(self) -> bool:
        return self.type is NodeType.PRODUCT

    @classmethod
    def for_product(cls, product: Product) -> "KnowledgeNode":
        categories = product.category_names
        content = (
            f"{product.name}: {product.description}. "
            f"Price: {product.currency}{product.price}. "
            f"Categories: {', '.join(categories)}. "
            f"Rating: {product.average_rating}/5 ({product.review_count} reviews)."
        )
        return cls(
            id=product.id,
            type=NodeType.PRODUCT,
            content=content,
            metadata={
                "id": product.id,
                "name": product.name,
                "price": product.price,
                "currency": product.currency,
                "categories": categories,
                "rating": product.average_rating,
                "review_count": product.review_count,
                "in_stock": product.in_stock,
                "permalink": product.permalink,
                "short_description": product.short_description or product.description[:150],
                "image_url": product.image_url,
                "sale_price": product.sale_price,
                "regular_price": product.regular_price,
                "on_sale": product.on_sale,
            },
            score=PRODUCT_SCORE,
        )

    @classmethod
    def for_category(cls, name: str) -> "KnowledgeNode":
        return cls(
            id=f"category_{name}",
            type=NodeType.CATEGORY,
            content=f"Product category: {name}. Available products in this category.",
            metadata={"name": name},
            score=CATEGORY_SCORE,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "content": self.content,
            "metadata": dict(self.metadata),
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KnowledgeNode":
        return cls(
            id=str(data["id"]),
            type=NodeType(data["type"]),
            content=str(data.get("content", "")),
            metadata=dict(data.get("metadata") or {}),
            score=float(data.get("score", PRODUCT_SCORE)),
        )


def nodes_from_products(products: Iterable[Product]) -> list[KnowledgeNode]:
    """Product nodes in input order followed by one node per distinct category."""

    nodes: list[KnowledgeNode] = []
    categories: dict[str, None] = {}
    for product in products:
        nodes.append(KnowledgeNode.for_product(product))
        for name in product.category_names:
            categories.setdefault(name, None)
    nodes.extend(KnowledgeNode.for_category(name) for name in categories)
    return nodes


def product_ids(nodes: Iterable[KnowledgeNode]) -> list[str]:
    return [node.metadata.get("id") or node.id for node in nodes if node.is_product]
