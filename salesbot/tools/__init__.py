"""Tool package exports."""

from .base import Tool, ToolContext, ToolResponse
from .coupons import GenerateCouponTool
from .products import ProductDetailsTool, SearchProductsTool
from .router import ToolRouter
from .transfer import HumanTransferTool

__all__ = [
    "Tool",
    "ToolContext",
    "ToolResponse",
    "ToolRouter",
    "GenerateCouponTool",
    "HumanTransferTool",
    "ProductDetailsTool",
    "SearchProductsTool",
]
