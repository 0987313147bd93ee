"""Reply generation: prompt assembly, completion call and action extraction."""

from __future__ import annotations

import logging
from typing import Sequence

from salesbot.analysis.types import MessageAnalysis
from salesbot.knowledge.models import KnowledgeNode
from salesbot.llm.base import CompletionProvider, CompletionRequest
from salesbot.llm.callers import FunctionCaller
from salesbot.llm.prompts import build_dialogue, build_system_prompt
from salesbot.memory.models import ConversationContext, TurnRequest
from salesbot.responses import GeneratedResponse

EMPTY_REPLY = "I apologize, but I encountered an issue. Could you please rephrase your question?"


class ResponseGenerator:
    """Produce the assistant reply for one turn.

    Provider errors are not caught here; the engine turns them into a
    fallback reply.
    """

    def __init__(self, provider: CompletionProvider, caller: FunctionCaller) -> None:
        self._provider = provider
        self._caller = caller
        self._logger = logging.getLogger("salesbot.generator")

    async def generate(
        self,
        request: TurnRequest,
        context: ConversationContext,
        analysis: MessageAnalysis,
        knowledge: Sequence[KnowledgeNode],
    ) -> GeneratedResponse:
        completion_request = self._caller.prepare(
            CompletionRequest(
                system_prompt=build_system_prompt(analysis, knowledge),
                messages=build_dialogue(context.previous_messages, request.message),
            )
        )
        result = await self._provider.complete(completion_request)
        actions = await self._caller.extract_actions(result, context)

        self._logger.info(
            "Generated reply for session %s: tokens=%d actions=%s",
            context.session_id,
            result.total_tokens,
            [action.type.value for action in actions],
        )
        return GeneratedResponse(
            text=result.content.strip() or EMPTY_REPLY,
            actions=actions,
            token_usage=result.total_tokens,
            model=result.model or self._provider.model,
        )
