"""Publish handlers - turn a supply or demand message into a listing and find matches."""
import re
from typing import Any, Dict, List

from marketplace_agent.core.logging import logger
from marketplace_agent.services.chat.handlers.base import ChatContext, HandlerResult, IntentHandler
from marketplace_agent.services.intent.router import Intent

QUANTITY_TOKEN = re.compile(r"(\d+)(斤|公斤)")
PRICE_TOKEN = re.compile(r"(\d+)(元|块)")

KNOWN_PRODUCTS = ("菠菜", "白菜", "萝卜")

# Business service matching parameters for a freshly created listing
MATCH_LIMIT = 3
MATCH_MIN_SCORE = 0.6


def extract_product_info(message: str) -> Dict[str, Any]:
    """Pull title, quantity, unit, minimum price and category out of a message.

    Quantities and prices are only recognized as whitespace-separated tokens
    such as ``50斤`` or ``3元``.
    """
    info: Dict[str, Any] = {}

    for token in message.split():
        quantity = QUANTITY_TOKEN.fullmatch(token)
        if quantity:
            info["quantity"] = quantity.group(1)
            info["quantity_unit"] = quantity.group(2)
        price = PRICE_TOKEN.fullmatch(token)
        if price:
            info["price_min"] = price.group(1)

    for product in KNOWN_PRODUCTS:
        if product in message:
            info["title"] = product
            break

    if "蔬菜" in message or "菜" in message:
        info["category"] = "VEGETABLE"

    return info


def is_complete_listing(info: Dict[str, Any]) -> bool:
    return "title" in info and "quantity" in info


def missing_fields(info: Dict[str, Any]) -> List[str]:
    missing = []
    if "title" not in info:
        missing.append("商品名称")
    if "quantity" not in info:
        missing.append("数量")
    if "category" not in info:
        missing.append("品类")
    return missing


class PublishListingHandler(IntentHandler):
    """Create a listing of ``listing_type`` and look up matches for it."""

    listing_type: str = ""

    def handle(self, context: ChatContext) -> HandlerResult:
        info = extract_product_info(context.message)

        if not is_complete_listing(info):
            missing = missing_fields(info)
            return HandlerResult(
                {"need_more_info": True, "missing_fields": missing},
                summary=f"信息不完整，缺少: {'、'.join(missing)}",
            )

        params = {"listing_type": self.listing_type, "publisher_id": context.merchant_id, **info}
        created = self.marketplace.create_listing(params)
        listing_id = created.get("listing_id") if created else None
        if not listing_id:
            return self._error_result("创建listing失败")

        match_result = self.marketplace.find_matches(listing_id, MATCH_LIMIT, MATCH_MIN_SCORE) or {}
        matches = list(match_result.get("matches") or [])
        logger.info(f"Listing {listing_id} ({self.listing_type}) created with {len(matches)} matches")

        return self._success_result(
            summary=f"已创建{self.listing_type} listing {listing_id}，找到{len(matches)}个匹配",
            listing_id=listing_id,
            matches=matches,
            match_count=len(matches),
        )


class PublishSupplyHandler(PublishListingHandler):
    actions = [Intent.PUBLISH_SUPPLY.value]
    listing_type = "SUPPLY"
    error_message = "处理发布供应请求失败"


class PublishDemandHandler(PublishListingHandler):
    actions = [Intent.PUBLISH_DEMAND.value]
    listing_type = "DEMAND"
    error_message = "处理发布需求请求失败"
