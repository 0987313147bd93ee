"""Tool router mapping model function names to tool implementations."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from salesbot.tools.base import Tool, ToolContext, ToolResponse


class ToolRouter:
    """Dispatch function invocations to concrete tools."""

    def __init__(self, tools: Iterable[Tool]) -> None:
        self._tools: dict[str, Tool] = {tool.name: tool for tool in tools}

    def supports(self, name: str) -> bool:
        return name in self._tools

    async def dispatch(
        self,
        name: str,
        *,
        session_id: str,
        site_id: str,
        user_id: str | None = None,
        arguments: Mapping[str, Any] | None = None,
    ) -> ToolResponse:
        tool = self._tools.get(name)
        if not tool:
            return ToolResponse(
                content="I don't have a tool for that yet.",
                success=False,
            )

        context = ToolContext(
            session_id=session_id,
            site_id=site_id,
            user_id=user_id,
            arguments=arguments or {},
        )
        return await tool.run(context)
