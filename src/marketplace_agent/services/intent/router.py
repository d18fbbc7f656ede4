"""Intent Router - keyword classifier that decides which marketplace action a message triggers."""
from enum import Enum
from typing import Optional, Sequence, Tuple

from marketplace_agent.core.logging import logger


class Intent(str, Enum):
    PUBLISH_SUPPLY = "PUBLISH_SUPPLY"
    PUBLISH_DEMAND = "PUBLISH_DEMAND"
    SEARCH_LISTINGS = "SEARCH_LISTINGS"
    VIEW_MATCHES = "VIEW_MATCHES"
    GET_STATS = "GET_STATS"
    GENERAL_CHAT = "GENERAL_CHAT"


# Labels recorded for non-text messages; they never reach the business handlers
VOICE_PROCESSING = "voice_processing"
IMAGE_PROCESSING = "image_processing"
DOCUMENT_PROCESSING = "document_processing"
UNSUPPORTED_MEDIA = "unsupported_media"


# Checked in order, first hit wins
INTENT_KEYWORDS: Sequence[Tuple[Intent, Tuple[str, ...]]] = (
    (Intent.PUBLISH_SUPPLY, ("发布", "供应", "出售")),
    (Intent.PUBLISH_DEMAND, ("需要", "购买", "求购")),
    (Intent.SEARCH_LISTINGS, ("搜索", "查找", "寻找")),
    (Intent.VIEW_MATCHES, ("匹配", "推荐")),
    (Intent.GET_STATS, ("统计", "数据", "报告")),
)


class IntentClassifier:
    """Routes user messages to marketplace intents by keyword."""

    def __init__(self, rules: Sequence[Tuple[Intent, Tuple[str, ...]]] = INTENT_KEYWORDS):
        self.rules = rules

    def classify(self, message: Optional[str]) -> Intent:
        """Return the first intent whose keywords occur in ``message``."""
        text = (message or "").lower()
        for intent, keywords in self.rules:
            if any(keyword in text for keyword in keywords):
                logger.debug(f"Intent routing: {text[:50]} => {intent.value}")
                return intent
        return Intent.GENERAL_CHAT


intent_classifier = IntentClassifier()
