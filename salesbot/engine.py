"""Per-turn orchestration with a guaranteed reply."""

from __future__ import annotations

import asyncio
import base64
import functools
import logging
import random
import time

from salesbot.analysis.base import MessageAnalyzer
from salesbot.analysis.classifier import LLMAnalyzer
from salesbot.analysis.types import Intent
from salesbot.catalog.store import CatalogStore, SQLiteCatalogStore
from salesbot.core.config import Settings
from salesbot.core.metrics import MetricsCollector
from salesbot.knowledge.retriever import KnowledgeRetriever
from salesbot.llm.base import CompletionProvider
from salesbot.llm.callers import build_function_caller
from salesbot.llm.generator import EMPTY_REPLY, ResponseGenerator
from salesbot.llm.openai_compat import OpenAICompatibleProvider
from salesbot.memory.context import ContextBuilder
from salesbot.memory.models import TurnRequest
from salesbot.memory.store import TTLStore, create_ttl_store
from salesbot.policy.enhancer import ResponseEnhancer
from salesbot.responses import EnhancedResponse
from salesbot.services.analytics import AnalyticsSink, InteractionEvent, LoggingAnalyticsSink
from salesbot.services.coupons import CouponIssuer, InMemoryCouponIssuer
from salesbot.tools import (
    GenerateCouponTool,
    HumanTransferTool,
    ProductDetailsTool,
    SearchProductsTool,
    ToolRouter,
)

logger = logging.getLogger("salesbot.engine")

FALLBACK_MESSAGES = (
    "I apologize, but I'm having some technical difficulties right now. Could you please rephrase your question?",
    "I'm sorry, I didn't quite understand that. Could you tell me more about what you're looking for?",
    "Let me help you find what you need. What specific product or information are you looking for today?",
    "I'm here to help you with your shopping needs. What can I assist you with?",
)
FALLBACK_CONFIDENCE = 0.1


def response_cache_key(message: str, site_id: str) -> str:
    encoded = base64.b64encode(message.encode("utf-8")).decode("ascii")
    return f"ai_response:{encoded}:{site_id}"


class SalesEngine:
    """Run context, analysis, retrieval, generation and enhancement for one turn.

    :meth:`process_message` never raises: any failure in the pipeline becomes a
    generic fallback reply with the error kept in metadata.
    """

    def __init__(
        self,
        *,
        context_builder: ContextBuilder,
        analyzer: MessageAnalyzer,
        retriever: KnowledgeRetriever,
        generator: ResponseGenerator,
        enhancer: ResponseEnhancer,
        cache: TTLStore,
        analytics: AnalyticsSink | None = None,
        metrics: MetricsCollector | None = None,
        response_ttl_seconds: int = 3600,
        rng: random.Random | None = None,
    ) -> None:
        self._context_builder = context_builder
        self._analyzer = analyzer
        self._retriever = retriever
        self._generator = generator
        self._enhancer = enhancer
        self._cache = cache
        self._analytics = analytics if analytics is not None else LoggingAnalyticsSink()
        self.metrics = metrics if metrics is not None else MetricsCollector()
        self._response_ttl_seconds = response_ttl_seconds
        self._rng = rng or random.Random()
        self._pending_events: set[asyncio.Task] = set()

    async def process_message(self, request: TurnRequest) -> EnhancedResponse:
        started = time.perf_counter()
        try:
            response = await self._run_pipeline(request)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Turn failed for session %s; returning fallback", request.session_id)
            response = self.fallback_response(exc)

        if not response.message or not response.message.strip():
            response.message = EMPTY_REPLY

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.metadata["processing_time_ms"] = round(elapsed_ms, 2)

        if not response.is_fallback:
            await self._cache_response(request, response)
        self._track(request, response, elapsed_ms)
        self.metrics.record_turn(
            response.intent.value,
            [action.type.value for action in response.actions],
            fallback=response.is_fallback,
            token_usage=int(response.metadata.get("token_usage") or 0),
        )
        return response

    async def _run_pipeline(self, request: TurnRequest) -> EnhancedResponse:
        context = await self._context_builder.build(request, persist=False)
        analysis = await self._analyzer.analyze(request.message, context)
        await self._context_builder.record_turn(context, analysis)

        knowledge = await self._retriever.retrieve(request.message, request.site_id)
        generated = await self._generator.generate(request, context, analysis, knowledge)
        return await self._enhancer.enhance(generated, context, analysis, request.message, knowledge)

    def fallback_response(self, exc: BaseException) -> EnhancedResponse:
        return EnhancedResponse(
            message=self._rng.choice(FALLBACK_MESSAGES),
            intent=Intent.UNKNOWN,
            confidence=FALLBACK_CONFIDENCE,
            sentiment=0.0,
            metadata={"fallback": True, "error": str(exc)},
        )

    async def _cache_response(self, request: TurnRequest, response: EnhancedResponse) -> None:
        try:
            await self._cache.set(
                response_cache_key(request.message, request.site_id),
                response.to_dict(),
                self._response_ttl_seconds,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to cache response for session %s: %s", request.session_id, exc)

    def _track(self, request: TurnRequest, response: EnhancedResponse, elapsed_ms: float) -> None:
        event = InteractionEvent(
            session_id=request.session_id,
            site_id=request.site_id,
            intent=response.intent.value,
            sentiment=response.sentiment,
            confidence=response.confidence,
            response_time_ms=elapsed_ms,
            token_usage=int(response.metadata.get("token_usage") or 0),
            fallback=response.is_fallback,
        )
        task = asyncio.create_task(self._analytics.track_interaction(event))
        self._pending_events.add(task)
        task.add_done_callback(functools.partial(self._tracked, request.session_id))

    def _tracked(self, session_id: str, task: asyncio.Task) -> None:
        self._pending_events.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Analytics tracking failed for session %s: %s", session_id, exc)

    async def drain(self) -> None:
        """Wait for analytics events still in flight."""

        if self._pending_events:
            await asyncio.gather(*self._pending_events, return_exceptions=True)


def build_provider(settings: Settings) -> OpenAICompatibleProvider:
    return OpenAICompatibleProvider(
        settings.llm_api_key,
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.llm_timeout_seconds,
        min_interval_seconds=settings.llm_min_interval_seconds,
        referer=settings.openrouter_referer,
        title=settings.openrouter_title,
    )


def build_engine(
    settings: Settings,
    *,
    catalog: CatalogStore | None = None,
    cache: TTLStore | None = None,
    provider: CompletionProvider | None = None,
    coupons: CouponIssuer | None = None,
    analytics: AnalyticsSink | None = None,
    metrics: MetricsCollector | None = None,
) -> SalesEngine:
    """Wire the default collaborators from settings; any of them may be overridden."""

    if catalog is None:
        catalog = SQLiteCatalogStore(settings.catalog_db_path)
    if cache is None:
        cache = create_ttl_store(settings.redis_url)
    if coupons is None:
        coupons = InMemoryCouponIssuer(max_discount=settings.coupon_max_discount)
    if provider is None:
        provider = build_provider(settings)

    router = ToolRouter(
        [
            SearchProductsTool(catalog),
            ProductDetailsTool(catalog),
            GenerateCouponTool(coupons),
            HumanTransferTool(),
        ]
    )
    return SalesEngine(
        context_builder=ContextBuilder(cache, settings.context_ttl_seconds),
        analyzer=LLMAnalyzer(provider),
        retriever=KnowledgeRetriever(catalog, cache, settings.knowledge_ttl_seconds),
        generator=ResponseGenerator(provider, build_function_caller(settings.native_functions, router)),
        enhancer=ResponseEnhancer(catalog, coupons),
        cache=cache,
        analytics=analytics,
        metrics=metrics,
        response_ttl_seconds=settings.response_cache_ttl_seconds,
    )
