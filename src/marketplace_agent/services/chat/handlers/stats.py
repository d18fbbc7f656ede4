"""Marketplace statistics handler."""
from marketplace_agent.services.chat.handlers.base import ChatContext, HandlerResult, IntentHandler
from marketplace_agent.services.intent.router import Intent


class MarketplaceStatsHandler(IntentHandler):
    actions = [Intent.GET_STATS.value]
    error_message = "获取统计信息失败"

    def handle(self, context: ChatContext) -> HandlerResult:
        stats = dict(self.marketplace.get_marketplace_stats() or {})
        summary = "，".join(f"{key}: {value}" for key, value in stats.items() if not isinstance(value, (dict, list)))
        return HandlerResult(stats, summary=summary or None)
