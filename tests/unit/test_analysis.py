import asyncio

import pytest

from salesbot.analysis.classifier import LLMAnalyzer, parse_analysis
from salesbot.analysis.rules import RuleBasedAnalyzer, classify_intent, score_sentiment
from salesbot.analysis.types import Intent, MessageAnalysis, PurchaseReadiness, Urgency
from salesbot.llm.base import CompletionError
from salesbot.memory.models import ConversationContext


def context():
    return ConversationContext(session_id="sess-1", site_id="S1")


@pytest.mark.parametrize(
    "message, intent",
    [
        ("Hello there", Intent.GREETING),
        ("I'm looking for a gaming laptop", Intent.PRODUCT_INQUIRY),
        ("How much is shipping?", Intent.PRICE_QUESTION),
        ("Compare these two", Intent.COMPARISON),
        ("I'll buy it now", Intent.PURCHASE_INTENT),
        ("My order arrived broken", Intent.PURCHASE_INTENT),
        ("The screen is defective", Intent.COMPLAINT),
        ("bye", Intent.GOODBYE),
        ("history lesson", Intent.UNKNOWN),
    ],
)
def test_classify_intent_follows_table_order(message, intent):
    assert classify_intent(message) is intent


def test_greeting_must_lead_the_message():
    assert classify_intent("well hello") is not Intent.GREETING


def test_sentiment_scores_word_lists():
    assert score_sentiment("this is broken and terrible") < 0
    assert score_sentiment("I love it, amazing!") > 0
    assert score_sentiment("it arrived on tuesday") == 0.0
    assert score_sentiment("") == 0.0


def test_sentiment_strips_punctuation_but_divides_by_all_tokens():
    message = "Great! " + " ".join(["word"] * 19)

    assert score_sentiment(message) == 0.5


def test_sentiment_is_clamped():
    assert score_sentiment("great") == 1.0
    assert score_sentiment("awful") == -1.0


def test_rule_analyzer_marks_fallback_confidence():
    analysis = asyncio.run(RuleBasedAnalyzer().analyze("this is broken and terrible", context()))

    assert analysis.intent is Intent.COMPLAINT
    assert analysis.sentiment_label == "negative"
    assert analysis.confidence == 0.3
    assert analysis.source == "rules"


def test_parse_analysis_accepts_fenced_json_and_keeps_extras():
    reply = """```json
{"intent": "purchase_intent", "sentiment": 0.8, "confidence": 0.9,
 "entities": {"products": ["Zenbook"]}, "urgency": "high",
 "purchaseReadiness": "ready_to_buy", "budget": "under 1000"}
```"""

    analysis = parse_analysis(reply)

    assert analysis.intent is Intent.PURCHASE_INTENT
    assert analysis.urgency is Urgency.HIGH
    assert analysis.purchase_readiness is PurchaseReadiness.READY_TO_BUY
    assert analysis.entity_list("products") == ["Zenbook"]
    assert analysis.extras == {"budget": "under 1000"}
    assert analysis.to_dict()["budget"] == "under 1000"


def test_parse_analysis_defaults_and_clamps():
    analysis = parse_analysis('{"intent": "teleport", "sentiment": 4, "confidence": "high", "urgency": 3}')

    assert analysis.intent is Intent.UNKNOWN
    assert analysis.sentiment == 1.0
    assert analysis.confidence == 0.5
    assert analysis.urgency is Urgency.MEDIUM
    assert analysis.purchase_readiness is PurchaseReadiness.RESEARCHING


def test_parse_analysis_rejects_non_objects():
    with pytest.raises(ValueError):
        parse_analysis("[1, 2, 3]")
    with pytest.raises(ValueError):
        parse_analysis("not json at all")


def test_entity_list_normalises_values():
    analysis = MessageAnalysis(entities={"categories": "Laptops", "products": ["", " MSI "], "other": {"a": 1}})

    assert analysis.entity_list("categories") == ["Laptops"]
    assert analysis.entity_list("products") == ["MSI"]
    assert analysis.entity_list("other") == []
    assert analysis.entity_list("missing") == []


def test_llm_analyzer_uses_model_reply(fake_provider):
    provider = fake_provider(analysis={"intent": "comparison", "sentiment": 0.2, "confidence": 0.7})

    analysis = asyncio.run(LLMAnalyzer(provider).analyze("which one is better?", context()))

    assert analysis.intent is Intent.COMPARISON
    assert analysis.confidence == 0.7
    assert analysis.source == "model"
    assert provider.requests[0].temperature == 0.3
    assert provider.requests[0].max_tokens == 500


def test_llm_analyzer_falls_back_on_provider_error(fake_provider):
    provider = fake_provider(analysis=None)

    analysis = asyncio.run(LLMAnalyzer(provider).analyze("bye", context()))

    assert analysis.intent is Intent.GOODBYE
    assert analysis.confidence == 0.3
    assert analysis.source == "rules"


def test_llm_analyzer_falls_back_on_unparseable_reply(fake_provider):
    provider = fake_provider(analysis="Sure! The intent is greeting.")

    analysis = asyncio.run(LLMAnalyzer(provider).analyze("hey", context()))

    assert analysis.intent is Intent.GREETING
    assert analysis.source == "rules"


def test_llm_analyzer_without_provider_uses_rules():
    analysis = asyncio.run(LLMAnalyzer(None).analyze("show me laptops", context()))

    assert analysis.intent is Intent.PRODUCT_INQUIRY
    assert analysis.source == "rules"


def test_disabled_provider_is_not_called(fake_provider):
    class DisabledProvider(fake_provider):
        @property
        def enabled(self):
            return False

        async def complete(self, request):
            raise CompletionError("should not be called")

    analysis = asyncio.run(LLMAnalyzer(DisabledProvider()).analyze("hello", context()))

    assert analysis.intent is Intent.GREETING
