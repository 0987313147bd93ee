"""Function-calling protocols: native tool calls and text-pattern detection."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Mapping, Sequence

from salesbot.llm.base import CompletionRequest, CompletionResult, FunctionSpec
from salesbot.llm.prompts import FUNCTION_CATALOG, render_function_catalog
from salesbot.memory.models import ConversationContext
from salesbot.responses import Action
from salesbot.tools.router import ToolRouter

logger = logging.getLogger("salesbot.functions")

SEARCH_PATTERN = re.compile(r"search[_\s]products?\s*[:\-]?\s*(.+?)(?:\n|$)", re.I)
COUPON_PATTERN = re.compile(r"generate[_\s]coupon|discount|offer", re.I)
TRANSFER_PATTERN = re.compile(r"transfer|human|agent|representative", re.I)

TEXT_COUPON_ARGUMENTS = {"discountType": "percentage", "amount": 10}
TEXT_TRANSFER_REASON = "Customer requested human assistance"


class FunctionCaller(ABC):
    """Shapes the completion request and turns the reply into actions."""

    def __init__(self, router: ToolRouter, functions: Sequence[FunctionSpec] = FUNCTION_CATALOG) -> None:
        self._router = router
        self._functions = list(functions)

    @abstractmethod
    def prepare(self, request: CompletionRequest) -> CompletionRequest:
        """Return the request with the function catalog attached."""

    @abstractmethod
    async def extract_actions(self, result: CompletionResult, context: ConversationContext) -> list[Action]:
        """Execute the functions implied by ``result`` and return their actions."""

    async def _invoke(
        self,
        name: str,
        arguments: Mapping[str, Any],
        context: ConversationContext,
    ) -> Action | None:
        try:
            response = await self._router.dispatch(
                name,
                session_id=context.session_id,
                site_id=context.site_id,
                user_id=context.user_id,
                arguments=arguments,
            )
        except Exception:  # noqa: BLE001
            logger.exception("Function %s failed for session %s", name, context.session_id)
            return None
        if not response.success:
            logger.info("Function %s produced no action: %s", name, response.content)
        return response.action


class StructuredCaller(FunctionCaller):
    """Native mode: the catalog travels as provider tools."""

    def prepare(self, request: CompletionRequest) -> CompletionRequest:
        return replace(request, functions=list(self._functions))

    async def extract_actions(self, result: CompletionResult, context: ConversationContext) -> list[Action]:
        call = result.function_call
        if call is None:
            return []
        try:
            arguments = json.loads(call.arguments or "{}")
        except json.JSONDecodeError:
            logger.warning("Ignoring %s call with malformed arguments", call.name)
            return []
        if not isinstance(arguments, dict):
            logger.warning("Ignoring %s call with non-object arguments", call.name)
            return []

        action = await self._invoke(call.name, arguments, context)
        return [action] if action else []


class TextPatternCaller(FunctionCaller):
    """Text mode: the catalog is described in the prompt and the reply is scanned."""

    def prepare(self, request: CompletionRequest) -> CompletionRequest:
        return replace(
            request,
            system_prompt=request.system_prompt + render_function_catalog(self._functions),
            functions=[],
        )

    def detect(self, content: str) -> list[tuple[str, dict[str, Any]]]:
        """Return the function invocations implied by ``content`` in detection order."""

        calls: list[tuple[str, dict[str, Any]]] = []
        search = SEARCH_PATTERN.search(content)
        if search:
            query = re.sub(r"['\"]", "", search.group(1)).strip()
            if query:
                calls.append(("search_products", {"query": query}))
        if COUPON_PATTERN.search(content):
            calls.append(("generate_coupon", dict(TEXT_COUPON_ARGUMENTS)))
        if TRANSFER_PATTERN.search(content):
            calls.append(("request_human_transfer", {"reason": TEXT_TRANSFER_REASON}))
        return calls

    async def extract_actions(self, result: CompletionResult, context: ConversationContext) -> list[Action]:
        if not result.content:
            return []
        actions: list[Action] = []
        for name, arguments in self.detect(result.content):
            action = await self._invoke(name, arguments, context)
            if action:
                actions.append(action)
        return actions


def build_function_caller(native_functions: bool, router: ToolRouter) -> FunctionCaller:
    return StructuredCaller(router) if native_functions else TextPatternCaller(router)
