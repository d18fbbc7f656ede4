"""Base classes for marketplace intent handlers."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from marketplace_agent.core.logging import logger


@dataclass
class ChatContext:
    """Context passed to intent handlers."""
    session_id: str
    merchant_id: str
    message: str
    intent: str


@dataclass
class HandlerResult:
    """Outcome of a business action.

    ``fields`` are merged into the response payload; ``summary`` is a short
    line handed to the text model as part of the conversation context.
    """
    fields: Dict[str, Any] = field(default_factory=dict)
    summary: Optional[str] = None

    @property
    def failed(self) -> bool:
        return "error" in self.fields

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.fields)


class IntentHandler(ABC):
    """Abstract base class for intent handlers.

    Each handler serves one or more intents and talks to the business
    service through the injected client.
    """

    # Intent values this handler can process
    actions: List[str] = []

    # Reported in the payload when the business call blows up
    error_message: str = "处理请求失败"

    def __init__(self, marketplace=None):
        self.marketplace = marketplace

    @abstractmethod
    def handle(self, context: ChatContext) -> HandlerResult:
        """Run the business action for ``context``."""

    def can_handle(self, action: str) -> bool:
        return action in self.actions

    def run(self, context: ChatContext) -> HandlerResult:
        """Handle the context; failures become an ``error`` field."""
        try:
            return self.handle(context)
        except Exception as e:
            logger.error(f"{self.__class__.__name__} failed for session {context.session_id}: {e}")
            return self._error_result(self.error_message)

    def _error_result(self, error_message: str) -> HandlerResult:
        return HandlerResult({"error": error_message}, summary=error_message)

    def _success_result(self, summary: Optional[str] = None, **fields) -> HandlerResult:
        return HandlerResult({"success": True, **fields}, summary=summary)
