"""Session context building on top of the TTL store."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from salesbot.analysis.types import MessageAnalysis
from salesbot.memory.models import ChatMessage, ConversationContext, PriceRange, TurnRequest
from salesbot.memory.store import TTLStore

logger = logging.getLogger("salesbot.context")

SENTIMENT_HISTORY_LIMIT = 20

INTEREST_KEYWORDS = (
    "electronics",
    "clothing",
    "shoes",
    "books",
    "home",
    "garden",
    "sports",
    "fitness",
    "beauty",
    "health",
    "toys",
    "automotive",
    "cheap",
    "expensive",
    "quality",
    "durable",
    "fast",
    "reliable",
)

PRICE_PATTERN = re.compile(r"\$?(\d+(?:\.\d{2})?)")


def context_key(session_id: str) -> str:
    return f"conversation_context:{session_id}"


def extract_user_interests(messages: Iterable[ChatMessage]) -> list[str]:
    """Return vocabulary keywords mentioned in user messages, in first-seen order."""

    interests: dict[str, None] = {}
    for message in messages:
        if not message.is_user:
            continue
        content = message.content.lower()
        for keyword in INTEREST_KEYWORDS:
            if keyword in content:
                interests.setdefault(keyword, None)
    return list(interests)


def extract_price_range(messages: Iterable[ChatMessage], current: PriceRange | None = None) -> PriceRange | None:
    """Scan user messages for price mentions.

    A message naming two or more distinct amounts replaces the range; messages
    with fewer amounts keep whatever range is already known.
    """

    price_range = current
    for message in messages:
        if not message.is_user:
            continue
        prices = {float(match) for match in PRICE_PATTERN.findall(message.content.lower())}
        if len(prices) >= 2:
            price_range = PriceRange(min=min(prices), max=max(prices))
    return price_range


class ContextBuilder:
    """Rebuild and persist the per-session conversation context each turn."""

    def __init__(self, store: TTLStore, ttl_seconds: int = 3600) -> None:
        self._store = store
        self._ttl_seconds = ttl_seconds

    async def build(self, request: TurnRequest, *, persist: bool = True) -> ConversationContext:
        """Merge cached state with the request and return the turn's context.

        With ``persist=False`` the write is deferred to :meth:`record_turn`.
        """

        context = await self._load(request.session_id)
        if context is None:
            context = ConversationContext(
                session_id=request.session_id,
                site_id=request.site_id,
                user_id=request.user_id,
                previous_messages=list(request.previous_messages),
            )

        # The caller owns transcript continuity; cached history is only a fallback.
        if request.previous_messages:
            context.previous_messages = list(request.previous_messages)
        if request.user_id and not context.user_id:
            context.user_id = request.user_id
        context.site_id = request.site_id

        context.user_interests = extract_user_interests(context.previous_messages)
        context.product_preferences.price_range = extract_price_range(
            context.previous_messages,
            context.product_preferences.price_range,
        )

        if persist:
            await self._save(context)
        return context

    async def record_turn(self, context: ConversationContext, analysis: MessageAnalysis) -> None:
        """Fold the turn's analysis into the context and persist it.

        Only the most recent ``SENTIMENT_HISTORY_LIMIT`` sentiment scores are kept.
        """

        context.sentiment_history.append(analysis.sentiment)
        del context.sentiment_history[:-SENTIMENT_HISTORY_LIMIT]
        context.current_intent = analysis.intent.value
        await self._save(context)

    async def _load(self, session_id: str) -> ConversationContext | None:
        try:
            cached = await self._store.get(context_key(session_id))
            if cached is None:
                return None
            return ConversationContext.from_dict(cached)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Context cache read failed for %s: %s", session_id, exc)
            return None

    async def _save(self, context: ConversationContext) -> None:
        try:
            await self._store.set(context_key(context.session_id), context.to_dict(), self._ttl_seconds)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Context cache write failed for %s: %s", context.session_id, exc)
