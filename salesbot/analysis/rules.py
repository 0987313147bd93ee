"""Deterministic keyword analyzer used when no model analysis is available."""

from __future__ import annotations

import re

from salesbot.analysis.base import MessageAnalyzer
from salesbot.analysis.types import Intent, MessageAnalysis
from salesbot.memory.models import ConversationContext

# Evaluated in order; the first matching pattern decides the intent. The
# greeting alternatives end on a word boundary so "history" is not "hi".
INTENT_PATTERNS: tuple[tuple[Intent, re.Pattern[str]], ...] = (
    (Intent.GREETING, re.compile(r"^(hi|hello|hey|good morning|good afternoon|good evening)\b", re.I)),
    (Intent.PRODUCT_INQUIRY, re.compile(r"(looking for|need|want|show me|find|search|recommend|suggest)", re.I)),
    (Intent.PRICE_QUESTION, re.compile(r"(price|cost|how much|expensive|cheap|afford|budget)", re.I)),
    (Intent.COMPARISON, re.compile(r"(compare|versus|vs|difference|better|best|which)", re.I)),
    (Intent.PURCHASE_INTENT, re.compile(r"(buy|purchase|order|checkout|add to cart)", re.I)),
    (Intent.COMPLAINT, re.compile(r"(problem|issue|wrong|broken|defective|return|complaint)", re.I)),
    (Intent.GOODBYE, re.compile(r"(bye|goodbye|thanks|thank you|that's all)", re.I)),
)

POSITIVE_WORDS = frozenset({"good", "great", "excellent", "love", "like", "amazing", "perfect"})
NEGATIVE_WORDS = frozenset({"bad", "terrible", "hate", "awful", "disappointed", "wrong", "broken"})

FALLBACK_CONFIDENCE = 0.3


def classify_intent(message: str) -> Intent:
    text = message.strip()
    for intent, pattern in INTENT_PATTERNS:
        if pattern.search(text):
            return intent
    return Intent.UNKNOWN


def score_sentiment(message: str) -> float:
    """Score ``message`` in [-1, 1] from positive and negative word counts.

    Tokens are split on whitespace and then stripped of surrounding punctuation
    before the word-list lookup, so "great!" counts as positive. The divisor is
    still the raw whitespace token count.
    """

    tokens = message.lower().split()
    if not tokens:
        return 0.0
    score = 0
    for raw in tokens:
        token = raw.strip(" ,.!?;:\"'()")
        if token in POSITIVE_WORDS:
            score += 1
        elif token in NEGATIVE_WORDS:
            score -= 1
    return max(-1.0, min(1.0, score / len(tokens) * 10))


class RuleBasedAnalyzer(MessageAnalyzer):
    """Regex intent table plus word-list sentiment."""

    async def analyze(self, message: str, context: ConversationContext) -> MessageAnalysis:
        return self.analyze_text(message)

    def analyze_text(self, message: str) -> MessageAnalysis:
        return MessageAnalysis(
            intent=classify_intent(message),
            sentiment=score_sentiment(message),
            confidence=FALLBACK_CONFIDENCE,
            source="rules",
        )
