"""Prompt templates and the function catalog advertised to the model."""

from __future__ import annotations

from typing import Iterable, Sequence

from salesbot.analysis.types import MessageAnalysis
from salesbot.knowledge.models import KnowledgeNode
from salesbot.llm.base import DialogueTurn, FunctionSpec
from salesbot.memory.models import ChatMessage, ConversationContext

HISTORY_WINDOW = 10

ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert at analyzing user messages for e-commerce chatbots. "
    "Always respond with valid JSON."
)

FUNCTION_CATALOG: tuple[FunctionSpec, ...] = (
    FunctionSpec(
        name="search_products",
        description="Search for products based on customer query",
        parameters={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query"},
                "category": {"type": "string", "description": "Product category"},
                "maxPrice": {"type": "number", "description": "Maximum price"},
                "minPrice": {"type": "number", "description": "Minimum price"},
            },
            "required": ["query"],
        },
    ),
    FunctionSpec(
        name="get_product_details",
        description="Get detailed information about a specific product",
        parameters={
            "type": "object",
            "properties": {"productId": {"type": "string", "description": "Product ID"}},
            "required": ["productId"],
        },
    ),
    FunctionSpec(
        name="generate_coupon",
        description="Generate a discount coupon for the customer",
        parameters={
            "type": "object",
            "properties": {
                "discountType": {"type": "string", "enum": ["percentage", "fixed_cart"]},
                "amount": {"type": "number", "description": "Discount amount"},
                "products": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Applicable product IDs",
                },
            },
            "required": ["discountType", "amount"],
        },
    ),
    FunctionSpec(
        name="request_human_transfer",
        description="Transfer conversation to a human agent",
        parameters={
            "type": "object",
            "properties": {"reason": {"type": "string", "description": "Reason for transfer"}},
            "required": ["reason"],
        },
    ),
)


def build_analysis_prompt(message: str, context: ConversationContext) -> str:
    return f"""
Analyze the following user message and provide structured analysis:

Message: "{message}"

Previous context:
- User interests: {', '.join(context.user_interests)}
- Session history: {len(context.previous_messages)} messages
- Current intent: {context.current_intent or 'unknown'}

Please analyze:
1. Primary intent (greeting, product_inquiry, price_question, comparison, purchase_intent, complaint, goodbye)
2. Sentiment (-1.0 to 1.0)
3. Confidence level (0.0 to 1.0)
4. Extracted entities (products, categories, features, price mentions)
5. Urgency level (low, medium, high)
6. Purchase readiness (researching, considering, ready_to_buy)

Respond with valid JSON only, using the keys intent, sentiment, confidence, entities, urgency and purchaseReadiness:
"""


def build_system_prompt(analysis: MessageAnalysis, knowledge: Sequence[KnowledgeNode]) -> str:
    knowledge_text = "\n".join(node.content for node in knowledge)
    return f"""You are an AI sales assistant for an e-commerce website. Your role is to help customers find products, answer questions, and guide them toward making purchases.

CONTEXT:
- Customer intent: {analysis.intent.value}
- Customer sentiment: {analysis.sentiment_label}
- Purchase readiness: {analysis.purchase_readiness.value}
- Urgency: {analysis.urgency.value}

AVAILABLE PRODUCTS:
{knowledge_text}

GUIDELINES:
1. Be helpful, friendly, and knowledgeable about the products
2. Ask clarifying questions when needed
3. Recommend products based on customer needs, with features, benefits, and pricing
4. When suggesting multiple products, explain the differences and help customers choose
5. Include product ratings and customer feedback when available
6. Mention any special offers, discounts, or promotions available
7. Offer alternatives if the exact product isn't available
8. Be honest about limitations, suitability, and stock status
9. Use natural, conversational language
10. Keep responses concise but informative

SALES TECHNIQUES:
- Build rapport and trust
- Understand customer needs before recommending
- Present solutions, not just products
- Create urgency when appropriate
- Handle objections professionally
- Use social proof (reviews, ratings) when available
- Offer value-added services or bundles

Remember: Your goal is to provide excellent customer service while helping drive sales. Always prioritize the customer's needs and satisfaction."""


def render_function_catalog(functions: Iterable[FunctionSpec]) -> str:
    """Describe the function catalog in plain text for models without native tools."""

    lines = "\n".join(spec.describe() for spec in functions)
    return f"\n\nAvailable functions:\n{lines}"


def build_dialogue(previous: Sequence[ChatMessage], message: str) -> list[DialogueTurn]:
    turns = [
        DialogueTurn(role="user" if item.is_user else "assistant", content=item.content)
        for item in previous[-HISTORY_WINDOW:]
    ]
    turns.append(DialogueTurn(role="user", content=message))
    return turns
