from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

import pytest

# Point the app at a throwaway catalog and keep it offline before anything imports settings.
_TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="salesbot-tests-"))
os.environ["CATALOG_DB_PATH"] = str(_TEST_DATA_DIR / "catalog.db")
os.environ["SEED_DIR"] = str(_TEST_DATA_DIR / "seed")
for _name in ("LLM_API_KEY", "REDIS_URL", "LLM_NATIVE_FUNCTIONS", "LLM_MODEL"):
    os.environ.pop(_name, None)

from salesbot.catalog.models import Product, ProductCategory, ProductImage, ProductStatus, StockStatus  # noqa: E402
from salesbot.catalog.store import SQLiteCatalogStore  # noqa: E402
from salesbot.core.config import Settings  # noqa: E402
from salesbot.core.metrics import MetricsCollector  # noqa: E402
from salesbot.engine import build_engine  # noqa: E402
from salesbot.llm.base import (  # noqa: E402
    CompletionError,
    CompletionProvider,
    CompletionRequest,
    CompletionResult,
    FunctionCall,
)
from salesbot.llm.prompts import ANALYSIS_SYSTEM_PROMPT  # noqa: E402
from salesbot.memory.store import InMemoryTTLStore  # noqa: E402


class FakeProvider(CompletionProvider):
    """Scripted completion provider.

    Analysis requests get ``analysis`` (a dict, raw text, or an error when
    unset); reply requests get ``reply`` plus an optional function call.
    """

    def __init__(
        self,
        reply: str = "Happy to help you find something!",
        *,
        function_call: FunctionCall | None = None,
        analysis: dict | str | None = None,
        error: Exception | None = None,
        tokens: int = 42,
    ) -> None:
        self.model = "fake-model"
        self.reply = reply
        self.function_call = function_call
        self.analysis = analysis
        self.error = error
        self.tokens = tokens
        self.requests: list[CompletionRequest] = []

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        self.requests.append(request)
        if request.system_prompt == ANALYSIS_SYSTEM_PROMPT:
            if self.analysis is None:
                raise CompletionError("analysis not scripted")
            content = self.analysis if isinstance(self.analysis, str) else json.dumps(self.analysis)
            return CompletionResult(content=content, total_tokens=5, model=self.model)
        if self.error is not None:
            raise self.error
        return CompletionResult(
            content=self.reply,
            function_call=self.function_call,
            total_tokens=self.tokens,
            model=self.model,
        )

    @property
    def reply_requests(self) -> list[CompletionRequest]:
        return [item for item in self.requests if item.system_prompt != ANALYSIS_SYSTEM_PROMPT]


def _make_product(
    product_id: str,
    *,
    site_id: str = "S1",
    name: str | None = None,
    price: float = 100.0,
    rating: float = 4.0,
    reviews: int = 10,
    stock: StockStatus = StockStatus.IN_STOCK,
    categories: tuple[str, ...] = ("Laptops",),
    **overrides,
) -> Product:
    fields = dict(
        id=product_id,
        site_id=site_id,
        name=name or f"Product {product_id}",
        price=price,
        regular_price=price,
        description=f"Description for {name or product_id}",
        stock_status=stock,
        average_rating=rating,
        review_count=reviews,
        categories=[ProductCategory(id=category.lower(), name=category, slug=category.lower()) for category in categories],
        images=[ProductImage(src=f"https://cdn.example.com/{product_id}.jpg")],
        permalink=f"https://shop.example.com/p/{product_id}",
    )
    fields.update(overrides)
    return Product(**fields)


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def make_product():
    return _make_product


@pytest.fixture
def catalog(tmp_path) -> SQLiteCatalogStore:
    return SQLiteCatalogStore(tmp_path / "catalog.db")


@pytest.fixture
def laptop_catalog(catalog: SQLiteCatalogStore) -> SQLiteCatalogStore:
    catalog.upsert_products(
        [
            _make_product("1", name="ASUS Zenbook 14", price=999, rating=4.6, reviews=120, categories=("Laptops", "Ultrabooks")),
            _make_product("2", name="MSI Katana Gaming Laptop", price=1299, rating=4.4, reviews=80, categories=("Laptops", "Gaming")),
            _make_product("3", name="Lenovo ThinkPad X1", price=1499, rating=4.8, reviews=45, stock=StockStatus.OUT_OF_STOCK),
            _make_product("4", name="HP Pavilion Mouse", price=25, rating=3.9, reviews=300, categories=("Accessories",)),
            _make_product("5", name="Draft Laptop", status=ProductStatus.DRAFT),
        ]
    )
    return catalog


@pytest.fixture
def engine_factory(catalog):
    def factory(
        provider: CompletionProvider,
        *,
        native: bool = True,
        catalog_store=None,
        cache=None,
        coupons=None,
        analytics=None,
    ):
        return build_engine(
            Settings(llm_native_functions=native),
            catalog=catalog_store if catalog_store is not None else catalog,
            cache=cache if cache is not None else InMemoryTTLStore(),
            provider=provider,
            coupons=coupons,
            analytics=analytics,
            metrics=MetricsCollector(),
        )

    return factory
