"""Text generation gateway."""
from typing import Optional

import httpx

from marketplace_agent.core.config import ConfigResolver
from marketplace_agent.core.errors import MissingCredentialError
from marketplace_agent.core.logging import logger
from marketplace_agent.services.chat.prompt import build_marketplace_prompt
from marketplace_agent.services.http import post_json
from marketplace_agent.services.local_responder import local_reply
from marketplace_agent.services.providers.registry import ProviderConfig, resolve_credential
from marketplace_agent.services.providers.text import TextProvider, create_text_provider
from marketplace_agent.services.stages import StageResult, guard, run_chain


class TextGenerationGateway:
    """Generates replies through the configured provider, then the local responder."""

    def __init__(
        self,
        config: ProviderConfig,
        resolver: ConfigResolver,
        client: Optional[httpx.Client] = None,
        provider: Optional[TextProvider] = None,
    ):
        self.config = config
        self.resolver = resolver
        self.client = client or httpx.Client(timeout=config.timeout_seconds)
        self.provider = provider or create_text_provider(config)
        self.stages = [
            (self.provider.name, self._remote_stage),
            ("local", self._local_stage),
        ]
        logger.info(f"Text generation via {config.provider.value} ({config.model}) at {config.base_url}")

    def has_credential(self) -> bool:
        return resolve_credential(self.config.spec, self.resolver) is not None

    def generate(self, user_message: str, conversation_context: str, intent: Optional[str]) -> str:
        """Return a reply for ``user_message``. Never raises."""
        result = run_chain(self.stages, user_message, conversation_context, intent)
        if result.ok:
            return result.value
        # Local stage cannot decline; this only guards against an empty stage list
        return local_reply(user_message, intent)

    def _remote_stage(self, user_message: str, conversation_context: str, intent: Optional[str]) -> StageResult[str]:
        prompt = build_marketplace_prompt(user_message, conversation_context, intent)
        return guard(self.provider.name, lambda: self._call_remote(prompt))

    def _call_remote(self, prompt: str) -> str:
        api_key = resolve_credential(self.config.spec, self.resolver)
        if not api_key:
            raise MissingCredentialError(self.provider.name, "no API key configured")

        data = post_json(
            self.client,
            self.provider.name,
            self.provider.endpoint(),
            self.provider.build_request(prompt),
            headers=self.provider.auth_headers(api_key),
            params=self.provider.query_params(api_key),
            timeout=self.config.timeout_seconds,
        )
        return self.provider.parse_reply(data)

    def _local_stage(self, user_message: str, conversation_context: str, intent: Optional[str]) -> StageResult[str]:
        return StageResult.success("local", local_reply(user_message, intent))

    def health_check(self) -> dict:
        return {
            "provider": self.config.provider.value,
            "model": self.config.model,
            "base_url": self.config.base_url,
            "credential_configured": self.has_credential(),
        }
