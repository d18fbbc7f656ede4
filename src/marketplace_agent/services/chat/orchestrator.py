"""Dialogue Orchestrator - routes each inbound message and persists the exchange.

Text messages go through:
1. Intent classification (IntentClassifier)
2. Business handler dispatch (HandlerRegistry)
3. Reply generation (TextGenerationGateway)
4. Persistence of the exchange (DialogStore)

Voice, photo and document messages are answered by the media handlers and
skip business dispatch.
"""
from typing import Any, Dict, Mapping, Optional

from marketplace_agent.core.logging import logger
from marketplace_agent.services.chat.handlers.base import ChatContext, HandlerResult
from marketplace_agent.services.chat.handlers.general import GeneralChatHandler
from marketplace_agent.services.chat.handlers.listing import PublishDemandHandler, PublishSupplyHandler
from marketplace_agent.services.chat.handlers.matches import ViewMatchesHandler
from marketplace_agent.services.chat.handlers.media import (
    DocumentMessageHandler,
    PhotoMessageHandler,
    VoiceMessageHandler,
    unsupported_media_reply,
)
from marketplace_agent.services.chat.handlers.search import SearchListingsHandler
from marketplace_agent.services.chat.handlers.stats import MarketplaceStatsHandler
from marketplace_agent.services.chat.prompt import build_conversation_context
from marketplace_agent.services.intent.router import (
    UNSUPPORTED_MEDIA,
    Intent,
    IntentClassifier,
    intent_classifier,
)
from marketplace_agent.services.llm import TextGenerationGateway
from marketplace_agent.services.marketplace import MarketplaceClient
from marketplace_agent.services.media.transcription import TranscriptionPipeline
from marketplace_agent.services.media.vision import VisionPipeline
from marketplace_agent.services.storage import DialogMessage, DialogStore, Session, make_message_id

TEXT = "text"

PROCESSING_ERROR = "处理失败"
PROCESSING_APOLOGY = "抱歉，系统暂时无法处理您的请求，请稍后再试。"
MULTIMODAL_ERROR = "多模态消息处理失败"
MULTIMODAL_APOLOGY = "抱歉，暂时无法处理您发送的内容，请用文字描述您的需求。"


class HandlerRegistry:
    """Registry for handlers keyed by the actions they declare.

    Used twice: business handlers keyed by intent, media handlers keyed by
    message type.
    """

    def __init__(self):
        self._handlers: Dict[str, Any] = {}

    def register(self, handler) -> None:
        """Register a handler instance for its declared actions."""
        for action in handler.actions:
            if action in self._handlers:
                logger.warning(
                    f"Action '{action}' already registered to {self._handlers[action].__class__.__name__}, "
                    f"overwriting with {handler.__class__.__name__}"
                )
            self._handlers[action] = handler
            logger.debug(f"Registered handler {handler.__class__.__name__} for action '{action}'")

    def get_handler(self, action: str):
        return self._handlers.get(action)

    def list_handlers(self) -> Dict[str, str]:
        return {action: handler.__class__.__name__ for action, handler in self._handlers.items()}

    def clear(self) -> None:
        self._handlers.clear()


class DialogueOrchestrator:
    """Entry point for every inbound marketplace message."""

    def __init__(
        self,
        store: DialogStore,
        marketplace: MarketplaceClient,
        gateway: TextGenerationGateway,
        transcription: TranscriptionPipeline,
        vision: VisionPipeline,
        classifier: IntentClassifier = intent_classifier,
        context_messages: int = 3,
    ):
        self.store = store
        self.marketplace = marketplace
        self.gateway = gateway
        self.classifier = classifier
        self.context_messages = context_messages

        self.handlers = HandlerRegistry()
        self.media_handlers = HandlerRegistry()
        self._register_handlers(transcription, vision)

    def _register_handlers(self, transcription: TranscriptionPipeline, vision: VisionPipeline) -> None:
        for handler_class in (
            PublishSupplyHandler,
            PublishDemandHandler,
            SearchListingsHandler,
            ViewMatchesHandler,
            MarketplaceStatsHandler,
            GeneralChatHandler,
        ):
            self.handlers.register(handler_class(self.marketplace))

        self.media_handlers.register(VoiceMessageHandler(transcription, self.classifier))
        self.media_handlers.register(PhotoMessageHandler(vision))
        self.media_handlers.register(DocumentMessageHandler())

        logger.info(
            f"Registered {len(self.handlers.list_handlers())} intent handlers, "
            f"{len(self.media_handlers.list_handlers())} media handlers"
        )

    def process_message(
        self,
        session_id: str,
        merchant_id: str,
        message_type: Optional[str] = TEXT,
        content: Optional[str] = "",
        attachment_info: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Process one inbound message and return the response payload.

        Never raises; the payload always carries ``ai_response`` and ``intent``.
        """
        intent = Intent.GENERAL_CHAT.value
        try:
            message_type = (message_type or TEXT).strip().lower()
            content = content or ""
            attachment_info = dict(attachment_info or {})
            logger.info(
                f"Processing message for session: {session_id}, merchant: {merchant_id}, type: {message_type}"
            )

            session = self._get_or_create_session(session_id, merchant_id)

            if message_type != TEXT:
                return self._process_multimodal(session, message_type, content, attachment_info)

            intent = self.classifier.classify(content).value
            result = self._dispatch(session, content, intent)

            recent = self.store.find_recent_messages(session.session_id, self.context_messages)
            context = build_conversation_context(intent, session.merchant_id, recent, result.summary)
            ai_response = self.gateway.generate(content, context, intent)

            self._save_dialog_message(session.session_id, content, ai_response, intent)

            payload = result.to_dict()
            payload["ai_response"] = ai_response
            payload["intent"] = intent
            return payload

        except Exception as e:
            logger.error(f"Error processing message for session {session_id}: {e}")
            return {
                "error": f"{PROCESSING_ERROR}: {e}",
                "ai_response": PROCESSING_APOLOGY,
                "intent": intent,
            }

    def _dispatch(self, session: Session, content: str, intent: str) -> HandlerResult:
        handler = self.handlers.get_handler(intent)
        if handler is None:
            return HandlerResult({"chat_mode": True})
        context = ChatContext(session.session_id, session.merchant_id, content, intent)
        return handler.run(context)

    def _process_multimodal(
        self,
        session: Session,
        message_type: str,
        content: str,
        attachment_info: Dict[str, Any],
    ) -> Dict[str, Any]:
        intent = f"multimodal_{message_type}"
        try:
            handler = self.media_handlers.get_handler(message_type)
            if handler is None:
                ai_response = unsupported_media_reply(message_type)
                intent = UNSUPPORTED_MEDIA
            else:
                ai_response = handler.reply(content, attachment_info)
                intent = handler.intent_label

            self._save_dialog_message(
                session.session_id, f"{content} [{message_type.upper()}]", ai_response, intent
            )
            return {
                "success": True,
                "ai_response": ai_response,
                "intent": intent,
                "message_type": message_type,
                "attachment_info": attachment_info,
            }
        except Exception as e:
            logger.error(f"Error handling {message_type} message for session {session.session_id}: {e}")
            return {
                "success": False,
                "error": MULTIMODAL_ERROR,
                "ai_response": MULTIMODAL_APOLOGY,
                "intent": intent,
            }

    def _get_or_create_session(self, session_id: str, merchant_id: str) -> Session:
        session = self.store.find_session(session_id)
        if session is None:
            session = self.store.create_session(session_id, merchant_id)
        return session

    def _save_dialog_message(self, session_id: str, content: str, ai_response: str, intent: str) -> None:
        """Persist the exchange; a storage failure is logged and never reaches the user."""
        try:
            self.store.create_dialog_message(
                DialogMessage(
                    message_id=make_message_id(content),
                    session_id=session_id,
                    message_type=intent,
                    content=content,
                    ai_response=ai_response,
                )
            )
        except Exception as e:
            logger.warning(f"Failed to save dialog message for session {session_id}: {e}")
