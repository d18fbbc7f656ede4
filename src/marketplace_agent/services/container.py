"""Service wiring.

Builds the orchestrator and its collaborators once per process from the
resolver and settings. Tests construct the pieces directly instead.
"""
from functools import lru_cache
from typing import Optional

import httpx

from marketplace_agent.core.config import ConfigResolver, Settings, resolver, settings
from marketplace_agent.core.logging import logger
from marketplace_agent.services.chat.orchestrator import DialogueOrchestrator
from marketplace_agent.services.llm import TextGenerationGateway
from marketplace_agent.services.marketplace import HttpMarketplaceClient
from marketplace_agent.services.media.files import TelegramFileClient
from marketplace_agent.services.media.transcription import TranscriptionPipeline
from marketplace_agent.services.media.vision import VisionPipeline
from marketplace_agent.services.providers.registry import load_provider_config
from marketplace_agent.services.storage import SQLiteDialogStore

# Vision and multipart uploads get a longer allowance than text calls
VISION_TIMEOUT_SECONDS = 60


def build_orchestrator(
    config_resolver: ConfigResolver = resolver,
    app_settings: Settings = settings,
    client: Optional[httpx.Client] = None,
) -> DialogueOrchestrator:
    """Assemble a DialogueOrchestrator with one shared httpx client."""
    provider_config = load_provider_config(config_resolver)
    client = client or httpx.Client(timeout=provider_config.timeout_seconds)

    files = TelegramFileClient(
        app_settings.telegram.bot_token,
        api_base=app_settings.telegram.api_base,
        client=client,
        timeout=provider_config.timeout_seconds,
    )
    orchestrator = DialogueOrchestrator(
        store=SQLiteDialogStore(str(app_settings.storage.db_path)),
        marketplace=HttpMarketplaceClient(
            app_settings.services.marketplace_url,
            client=client,
            timeout=app_settings.services.timeout_seconds,
        ),
        gateway=TextGenerationGateway(provider_config, config_resolver, client=client),
        transcription=TranscriptionPipeline(
            files, config_resolver, client=client, timeout=provider_config.timeout_seconds
        ),
        vision=VisionPipeline(files, config_resolver, client=client, timeout=VISION_TIMEOUT_SECONDS),
        context_messages=app_settings.storage.context_messages,
    )
    logger.info(f"Dialogue orchestrator ready (storage: {app_settings.storage.db_path})")
    return orchestrator


@lru_cache(maxsize=1)
def get_orchestrator() -> DialogueOrchestrator:
    """Process-wide orchestrator, built on first use."""
    return build_orchestrator()
