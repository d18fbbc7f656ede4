"""API routes."""
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from marketplace_agent.core.config import settings
from marketplace_agent.core.logging import logger
from marketplace_agent.models.schemas import HealthResponse, MessageRequest, MessageResponse
from marketplace_agent.services.chat.orchestrator import DialogueOrchestrator
from marketplace_agent.services.container import get_orchestrator

router = APIRouter()


def verify_auth(x_api_key: Optional[str] = None):
    """Verify API key if configured."""
    if settings.api_key and x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return True


@router.get("/health", response_model=HealthResponse)
def health_check(orchestrator: DialogueOrchestrator = Depends(get_orchestrator)):
    """Health check endpoint."""
    return HealthResponse(status="running", **orchestrator.gateway.health_check())


@router.post("/messages", response_model=MessageResponse)
def process_message(
    req: MessageRequest,
    x_api_key: Optional[str] = Header(None),
    orchestrator: DialogueOrchestrator = Depends(get_orchestrator),
):
    """Main message endpoint."""
    verify_auth(x_api_key)

    result = orchestrator.process_message(
        session_id=req.session_id,
        merchant_id=req.merchant_id,
        message_type=req.message_type,
        content=req.content,
        attachment_info=req.attachment_dict(),
    )
    if "error" in result:
        logger.warning(f"Message for session {req.session_id} finished with error: {result['error']}")
    return MessageResponse(**result)
