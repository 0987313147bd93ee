"""Model-backed message analyzer with a deterministic fallback."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping

from salesbot.analysis.base import MessageAnalyzer
from salesbot.analysis.rules import RuleBasedAnalyzer
from salesbot.analysis.types import Intent, MessageAnalysis, PurchaseReadiness, Urgency
from salesbot.llm.base import CompletionProvider, CompletionRequest, DialogueTurn
from salesbot.llm.prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt
from salesbot.memory.models import ConversationContext

logger = logging.getLogger("salesbot.analysis")

ANALYSIS_TEMPERATURE = 0.3
ANALYSIS_MAX_TOKENS = 500

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.S | re.I)
_KNOWN_KEYS = {
    "intent",
    "sentiment",
    "confidence",
    "entities",
    "urgency",
    "purchaseReadiness",
    "purchase_readiness",
}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _enum(enum_cls, value: Any, default):
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return default
    return default


def parse_analysis(text: str) -> MessageAnalysis:
    """Parse the model's JSON reply; raise ``ValueError`` when it is not a JSON object."""

    stripped = text.strip()
    fenced = _FENCE.match(stripped)
    if fenced:
        stripped = fenced.group(1)
    data = json.loads(stripped)
    if not isinstance(data, Mapping):
        raise ValueError("analysis reply is not a JSON object")

    sentiment = _number(data.get("sentiment"))
    confidence = _number(data.get("confidence"))
    entities = data.get("entities")
    readiness = data.get("purchaseReadiness", data.get("purchase_readiness"))

    return MessageAnalysis(
        intent=_enum(Intent, data.get("intent"), Intent.UNKNOWN),
        sentiment=_clamp(sentiment, -1.0, 1.0) if sentiment is not None else 0.0,
        confidence=_clamp(confidence, 0.0, 1.0) if confidence is not None else 0.5,
        entities=dict(entities) if isinstance(entities, Mapping) else {},
        urgency=_enum(Urgency, data.get("urgency"), Urgency.MEDIUM),
        purchase_readiness=_enum(PurchaseReadiness, readiness, PurchaseReadiness.RESEARCHING),
        extras={key: value for key, value in data.items() if key not in _KNOWN_KEYS},
        source="model",
    )


class LLMAnalyzer(MessageAnalyzer):
    """Ask the completion provider for a JSON analysis, falling back to rules."""

    def __init__(self, provider: CompletionProvider | None, fallback: RuleBasedAnalyzer | None = None) -> None:
        self._provider = provider
        self._fallback = fallback or RuleBasedAnalyzer()

    async def analyze(self, message: str, context: ConversationContext) -> MessageAnalysis:
        if self._provider is None or not self._provider.enabled:
            return self._fallback.analyze_text(message)

        request = CompletionRequest(
            system_prompt=ANALYSIS_SYSTEM_PROMPT,
            messages=[DialogueTurn(role="user", content=build_analysis_prompt(message, context))],
            temperature=ANALYSIS_TEMPERATURE,
            max_tokens=ANALYSIS_MAX_TOKENS,
        )
        try:
            result = await self._provider.complete(request)
            return parse_analysis(result.content or "{}")
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Message analysis failed for session %s, using fallback: %s",
                context.session_id,
                exc,
            )
            return self._fallback.analyze_text(message)
