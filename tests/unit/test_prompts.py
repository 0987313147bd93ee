from salesbot.analysis.types import Intent, MessageAnalysis, PurchaseReadiness
from salesbot.knowledge.models import KnowledgeNode
from salesbot.llm.prompts import HISTORY_WINDOW, build_analysis_prompt, build_dialogue, build_system_prompt
from salesbot.memory.models import ChatMessage, ConversationContext


def test_system_prompt_embeds_analysis_and_knowledge(make_product):
    analysis = MessageAnalysis(
        intent=Intent.PURCHASE_INTENT,
        sentiment=-0.4,
        purchase_readiness=PurchaseReadiness.CONSIDERING,
    )
    knowledge = [KnowledgeNode.for_product(make_product("1", name="ASUS Zenbook")), KnowledgeNode.for_category("Laptops")]

    prompt = build_system_prompt(analysis, knowledge)

    assert "- Customer intent: purchase_intent" in prompt
    assert "- Customer sentiment: negative" in prompt
    assert "- Purchase readiness: considering" in prompt
    assert "ASUS Zenbook: Description for ASUS Zenbook." in prompt
    assert "Product category: Laptops." in prompt
    assert "SALES TECHNIQUES:" in prompt


def test_analysis_prompt_mentions_session_state():
    context = ConversationContext(
        session_id="sess-1",
        site_id="S1",
        user_interests=["sports", "durable"],
        previous_messages=[ChatMessage(role="user", content="hi")],
    )

    prompt = build_analysis_prompt("Need running shoes", context)

    assert 'Message: "Need running shoes"' in prompt
    assert "- User interests: sports, durable" in prompt
    assert "- Session history: 1 messages" in prompt
    assert "- Current intent: unknown" in prompt


def test_dialogue_keeps_recent_history_then_current_message():
    history = [ChatMessage(role="user" if index % 2 == 0 else "assistant", content=str(index)) for index in range(15)]

    turns = build_dialogue(history, "latest")

    assert len(turns) == HISTORY_WINDOW + 1
    assert turns[0].content == "5"
    assert turns[0].role == "assistant"
    assert turns[-1].role == "user"
    assert turns[-1].content == "latest"
