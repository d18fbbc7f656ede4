"""Text-generation provider implementations.

Each provider knows its endpoint path, auth shape, request body and how to
pull the reply text out of the response. The gateway treats them all the
same way.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from marketplace_agent.core.errors import UnparsableResponseError
from marketplace_agent.services.http import join_endpoint
from marketplace_agent.services.providers.registry import Provider, ProviderConfig

TEMPERATURE = 0.2


# Response schemas

class ChatMessage(BaseModel):
    content: Optional[str] = None


class ChatChoice(BaseModel):
    message: ChatMessage


class ChatCompletionResponse(BaseModel):
    """OpenAI-compatible response (OpenAI, Zhipu, Xunfei)."""
    choices: List[ChatChoice]


class ClaudeContentBlock(BaseModel):
    type: str = "text"
    text: Optional[str] = None


class ClaudeResponse(BaseModel):
    content: List[ClaudeContentBlock]


class QwenOutput(BaseModel):
    text: Optional[str] = None


class QwenResponse(BaseModel):
    output: QwenOutput


class BaiduChatResponse(BaseModel):
    result: Optional[str] = None
    error_code: Optional[int] = None
    error_msg: Optional[str] = None


class TextProvider(ABC):
    """One remote text-generation backend."""

    provider: Provider
    path: str

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.provider.value

    def endpoint(self) -> str:
        return join_endpoint(self.config.base_url, self.path)

    def auth_headers(self, api_key: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    def query_params(self, api_key: str) -> Dict[str, str]:
        return {}

    @abstractmethod
    def build_request(self, prompt: str) -> Dict[str, Any]:
        """Build the provider-native JSON body for ``prompt``."""

    @abstractmethod
    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        """Pull the reply text from a decoded response body."""

    def parse_reply(self, data: Dict[str, Any]) -> str:
        """Validate the response and return its text, or raise UnparsableResponseError."""
        try:
            text = self.extract_text(data)
        except ValidationError as e:
            raise UnparsableResponseError(self.name, f"unexpected response shape: {e.error_count()} errors") from e
        if not text or not text.strip():
            raise UnparsableResponseError(self.name, "response has no text")
        return text


class OpenAICompatibleProvider(TextProvider):
    """system + user messages, reply in choices[0].message.content."""

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": self.config.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": TEMPERATURE,
        }

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        parsed = ChatCompletionResponse.model_validate(data)
        if not parsed.choices:
            return None
        return parsed.choices[0].message.content


class OpenAIProvider(OpenAICompatibleProvider):
    provider = Provider.OPENAI
    path = "/v1/chat/completions"


class ZhipuProvider(OpenAICompatibleProvider):
    provider = Provider.ZHIPU
    path = "/chat/completions"


class XunfeiProvider(OpenAICompatibleProvider):
    provider = Provider.XUNFEI
    path = "/chat/completions"


class ClaudeProvider(TextProvider):
    provider = Provider.CLAUDE
    path = "/v1/messages"

    def auth_headers(self, api_key: str) -> Dict[str, str]:
        return {"x-api-key": api_key, "anthropic-version": "2023-06-01"}

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "max_tokens": 1024,
            "system": self.config.system_prompt,
            "messages": [{"role": "user", "content": prompt}],
        }

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        parsed = ClaudeResponse.model_validate(data)
        texts = [block.text for block in parsed.content if block.type == "text" and block.text]
        return "".join(texts) or None


class QwenProvider(TextProvider):
    provider = Provider.QWEN
    path = "/services/aigc/text-generation/generation"

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "input": {
                "messages": [
                    {"role": "system", "content": self.config.system_prompt},
                    {"role": "user", "content": prompt},
                ]
            },
            "parameters": {"temperature": TEMPERATURE},
        }

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        return QwenResponse.model_validate(data).output.text


class BaiduProvider(TextProvider):
    """Wenxin: access token as a query parameter, system prompt as a top-level field."""
    provider = Provider.BAIDU
    path = "/wenxinworkshop/chat/completions_pro"

    def auth_headers(self, api_key: str) -> Dict[str, str]:
        return {}

    def query_params(self, api_key: str) -> Dict[str, str]:
        return {"access_token": api_key}

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "messages": [{"role": "user", "content": prompt}],
            "temperature": TEMPERATURE,
            "system": self.config.system_prompt,
        }

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        parsed = BaiduChatResponse.model_validate(data)
        if parsed.error_code:
            raise UnparsableResponseError(self.name, f"error {parsed.error_code}: {parsed.error_msg}")
        return parsed.result


TEXT_PROVIDERS: Dict[Provider, Type[TextProvider]] = {
    cls.provider: cls
    for cls in (OpenAIProvider, ClaudeProvider, ZhipuProvider, QwenProvider, BaiduProvider, XunfeiProvider)
}


def create_text_provider(config: ProviderConfig) -> TextProvider:
    return TEXT_PROVIDERS[config.provider](config)
