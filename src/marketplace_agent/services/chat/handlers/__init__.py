"""Marketplace intent and media handlers."""
from marketplace_agent.services.chat.handlers.base import ChatContext, HandlerResult, IntentHandler

# Business handlers
from marketplace_agent.services.chat.handlers.listing import PublishDemandHandler, PublishSupplyHandler
from marketplace_agent.services.chat.handlers.search import SearchListingsHandler
from marketplace_agent.services.chat.handlers.matches import ViewMatchesHandler
from marketplace_agent.services.chat.handlers.stats import MarketplaceStatsHandler
from marketplace_agent.services.chat.handlers.general import GeneralChatHandler

# Media handlers
from marketplace_agent.services.chat.handlers.media import (
    DocumentMessageHandler,
    MediaHandler,
    PhotoMessageHandler,
    VoiceMessageHandler,
)

__all__ = [
    # Base classes
    'IntentHandler',
    'HandlerResult',
    'ChatContext',
    'MediaHandler',
    # Business handlers
    'PublishSupplyHandler',
    'PublishDemandHandler',
    'SearchListingsHandler',
    'ViewMatchesHandler',
    'MarketplaceStatsHandler',
    'GeneralChatHandler',
    # Media handlers
    'VoiceMessageHandler',
    'PhotoMessageHandler',
    'DocumentMessageHandler',
]
