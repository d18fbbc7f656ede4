"""View-matches handler - aggregate matches across the merchant's latest listings."""
from marketplace_agent.services.chat.handlers.base import ChatContext, HandlerResult, IntentHandler
from marketplace_agent.services.intent.router import Intent

RECENT_LISTINGS = 3
MATCHES_PER_LISTING = 2
MIN_SCORE = 0.5


class ViewMatchesHandler(IntentHandler):
    actions = [Intent.VIEW_MATCHES.value]
    error_message = "获取匹配信息失败"

    def handle(self, context: ChatContext) -> HandlerResult:
        listings = self.marketplace.find_active_listings(context.merchant_id, RECENT_LISTINGS) or []

        all_matches = []
        for listing in listings:
            result = self.marketplace.find_matches(listing.get("listing_id"), MATCHES_PER_LISTING, MIN_SCORE) or {}
            for match in result.get("matches") or []:
                all_matches.append({**match, "source_listing": listing})

        return self._success_result(
            summary=f"在{len(listings)}条在售信息中找到{len(all_matches)}个匹配",
            matches=all_matches,
            match_count=len(all_matches),
        )
