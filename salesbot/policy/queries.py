"""Query-shape predicates used by the response policy.

The predicates live in one ordered table so their precedence can be read and
tested in isolation. ``inventory_count`` is checked first and short-circuits
product attachment entirely.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping

SHOW_ALL_LIMIT = 12
SPECIFIC_BRAND_LIMIT = 3
DEFAULT_LIMIT = 6

_PRODUCT_NOUNS = r"(products?|items?|laptops?|computers?)"

QUERY_PREDICATES: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "inventory_count",
        re.compile(rf"\b(how many|total|count)\s+{_PRODUCT_NOUNS}\b", re.I),
    ),
    (
        "show_all",
        re.compile(
            r"\b(show|display|see|list)\s+(me\s+|the\s+)?(all|entire|complete|every)\s+(the\s+)?"
            r"(products?|items?|laptops?|computers?|inventory|catalog)\b",
            re.I,
        ),
    ),
    (
        "specific_brand",
        re.compile(r"\b(asus|msi|lenovo|hp|katana|strix|vivobook|expertbook|zenbook)\b", re.I),
    ),
    (
        "product_request",
        re.compile(
            r"\b(show|suggest|recommend|find|looking for|need|want|buy)\s+"
            r"(products?|laptop|computer|gaming|design)\b",
            re.I,
        ),
    ),
)


@dataclass(frozen=True, slots=True)
class QueryProfile:
    inventory_count: bool = False
    show_all: bool = False
    specific_brand: bool = False
    product_request: bool = False

    @property
    def product_limit(self) -> int:
        if self.show_all:
            return SHOW_ALL_LIMIT
        if self.specific_brand:
            return SPECIFIC_BRAND_LIMIT
        return DEFAULT_LIMIT

    @property
    def asks_for_products(self) -> bool:
        return self.show_all or self.specific_brand or self.product_request

    @classmethod
    def from_matches(cls, matches: Mapping[str, bool]) -> "QueryProfile":
        return cls(**{name: bool(matches.get(name)) for name, _ in QUERY_PREDICATES})


def classify_query(query: str) -> QueryProfile:
    return QueryProfile.from_matches(
        {name: bool(pattern.search(query)) for name, pattern in QUERY_PREDICATES}
    )
