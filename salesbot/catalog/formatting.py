"""Display-ready product summaries for chat clients."""

from __future__ import annotations

import math
from typing import Any

from salesbot.catalog.models import PLACEHOLDER_IMAGE, Product

FULL_STAR = "★"
HALF_STAR = "⯪"
EMPTY_STAR = "☆"

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "CAD": "CA$", "AUD": "A$"}


def star_rating(rating: float, slots: int = 5) -> str:
    """Render ``rating`` as a fixed-width star string.

    >>> star_rating(3.6)
    '★★★⯪☆'
    """

    rating = max(0.0, min(float(rating or 0.0), float(slots)))
    full = math.floor(rating)
    half = (rating - full) >= 0.5
    stars = []
    for index in range(slots):
        if index < full:
            stars.append(FULL_STAR)
        elif index == full and half:
            stars.append(HALF_STAR)
        else:
            stars.append(EMPTY_STAR)
    return "".join(stars)


def _money(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


def price_html(product: Product) -> str:
    code = (product.currency or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    if product.on_sale:
        sale = product.effective_sale_price or product.price
        return (
            f'<span class="sale-price">{symbol}{_money(sale)}</span> '
            f'<span class="regular-price">{symbol}{_money(product.effective_regular_price)}</span> '
            '<span class="sale-badge">SALE</span>'
        )
    return f'<span class="current-price">{symbol}{_money(product.price)}</span>'


def badge(product: Product) -> str:
    if product.on_sale:
        return "Sale"
    if not product.in_stock:
        return "Out of Stock"
    return ""


def format_product(product: Product) -> dict[str, Any]:
    """Flatten a catalog product into the summary shape the chat widget renders."""

    categories = product.category_names
    return {
        "id": product.id,
        "name": product.name,
        "price": product.price,
        "price_html": price_html(product),
        "currency": product.currency or "USD",
        "regular_price": product.effective_regular_price,
        "sale_price": product.effective_sale_price,
        "on_sale": product.on_sale,
        "short_description": product.short_description or product.description[:180],
        "image_url": product.image_url or PLACEHOLDER_IMAGE,
        "permalink": product.permalink,
        "rating": product.average_rating,
        "rating_html": star_rating(product.average_rating),
        "review_count": product.review_count,
        "in_stock": product.in_stock,
        "stock_status": product.stock_status.value,
        "categories": ", ".join(categories),
        "category_list": categories,
        "badge": badge(product),
        "availability_text": "In Stock" if product.in_stock else "Out of Stock",
    }
