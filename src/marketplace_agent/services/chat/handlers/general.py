"""General intent handler - free conversation, no business call."""
from marketplace_agent.services.chat.handlers.base import ChatContext, HandlerResult, IntentHandler
from marketplace_agent.services.intent.router import Intent


class GeneralChatHandler(IntentHandler):
    actions = [Intent.GENERAL_CHAT.value]

    def handle(self, context: ChatContext) -> HandlerResult:
        return HandlerResult({"chat_mode": True})
