"""Search handler."""
from typing import Any, Dict

from marketplace_agent.services.chat.handlers.base import ChatContext, HandlerResult, IntentHandler
from marketplace_agent.services.intent.router import Intent

PAGE_SIZE = 5


def extract_search_params(message: str) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if "蔬菜" in message:
        params["category"] = "VEGETABLE"
    if "供应" in message:
        params["listing_type"] = "SUPPLY"
    # Demand wins when both words appear
    if "需求" in message:
        params["listing_type"] = "DEMAND"
    return params


class SearchListingsHandler(IntentHandler):
    actions = [Intent.SEARCH_LISTINGS.value]
    error_message = "搜索失败"

    def handle(self, context: ChatContext) -> HandlerResult:
        params = extract_search_params(context.message)
        params["page_size"] = PAGE_SIZE

        result = self.marketplace.search_listings(params) or {}
        total = result.get("total_count")
        return self._success_result(
            summary=f"搜索到{total if total is not None else 0}条商品信息",
            listings=result.get("listings"),
            total_count=total,
        )
