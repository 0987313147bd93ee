"""Hand-off to a human agent."""

from __future__ import annotations

from salesbot.responses import Action
from salesbot.tools.base import Tool, ToolContext, ToolResponse


class HumanTransferTool(Tool):
    """Signal that the conversation should move to a human agent."""

    name = "request_human_transfer"

    async def run(self, context: ToolContext) -> ToolResponse:
        reason = str(context.arguments.get("reason") or "").strip()
        if not reason:
            return ToolResponse(content="A transfer reason is required.", success=False)
        return ToolResponse(
            content="Transfer requested.",
            action=Action.transfer_human(reason),
        )
