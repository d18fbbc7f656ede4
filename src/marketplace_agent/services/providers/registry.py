"""Text-generation provider registry.

Static table of the six supported backends: default endpoint, default
model, and the ordered credential keys looked up through the ConfigResolver.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from marketplace_agent.core.config import ConfigResolver

GENERIC_API_KEY = "marketplace.ai.api.key"

DEFAULT_TIMEOUT_SECONDS = 30

DEFAULT_SYSTEM_PROMPT = (
    "你是一个专业的农贸市场AI助手，帮助商家进行智能供需撮合。你需要保持礼貌、简洁，"
    "引导用户提供必要信息，并在可能的情况下调用平台服务完成供需发布、匹配、统计等任务。"
)


class Provider(str, Enum):
    OPENAI = "OPENAI"
    CLAUDE = "CLAUDE"
    ZHIPU = "ZHIPU"     # GLM-4
    QWEN = "QWEN"       # Tongyi Qianwen
    BAIDU = "BAIDU"     # Wenxin / ERNIE
    XUNFEI = "XUNFEI"   # Spark

    @classmethod
    def parse(cls, value: Optional[str]) -> "Provider":
        """Parse a provider identifier; unknown or blank values mean OPENAI."""
        if not value:
            return cls.OPENAI
        return _ALIASES.get(value.strip().upper(), cls.OPENAI)


_ALIASES: Dict[str, Provider] = {
    "OPENAI": Provider.OPENAI,
    "CLAUDE": Provider.CLAUDE,
    "ZHIPU": Provider.ZHIPU,
    "GLM": Provider.ZHIPU,
    "QWEN": Provider.QWEN,
    "TONGYI": Provider.QWEN,
    "BAIDU": Provider.BAIDU,
    "WENXIN": Provider.BAIDU,
    "XUNFEI": Provider.XUNFEI,
    "XINGHUO": Provider.XUNFEI,
}


@dataclass(frozen=True)
class ProviderSpec:
    """Defaults and credential discovery rules for one provider."""
    provider: Provider
    base_url: str
    model: str
    credential_keys: Tuple[str, ...]


PROVIDERS: Dict[Provider, ProviderSpec] = {
    Provider.OPENAI: ProviderSpec(
        Provider.OPENAI, "https://api.openai.com", "gpt-4o-mini",
        ("openai.api.key", GENERIC_API_KEY),
    ),
    Provider.CLAUDE: ProviderSpec(
        Provider.CLAUDE, "https://api.anthropic.com", "claude-3-5-sonnet-20241022",
        ("anthropic.api.key", "claude.api.key", GENERIC_API_KEY),
    ),
    Provider.ZHIPU: ProviderSpec(
        Provider.ZHIPU, "https://open.bigmodel.cn/api/paas/v4", "glm-4-plus",
        ("zhipu.api.key", "glm.api.key", GENERIC_API_KEY),
    ),
    Provider.QWEN: ProviderSpec(
        Provider.QWEN, "https://dashscope.aliyuncs.com/api/v1", "qwen-plus",
        ("qwen.api.key", "dashscope.api.key", GENERIC_API_KEY),
    ),
    Provider.BAIDU: ProviderSpec(
        Provider.BAIDU, "https://aip.baidubce.com/rpc/2.0", "ERNIE-4.0-8K",
        ("baidu.api.key", "wenxin.api.key", GENERIC_API_KEY),
    ),
    Provider.XUNFEI: ProviderSpec(
        Provider.XUNFEI, "https://spark-api-open.xf-yun.com/v1", "4.0Ultra",
        ("xunfei.api.key", "xinghuo.api.key", GENERIC_API_KEY),
    ),
}


def get_spec(provider) -> ProviderSpec:
    """Look up a provider by enum or identifier string."""
    if not isinstance(provider, Provider):
        provider = Provider.parse(provider)
    return PROVIDERS[provider]


def resolve_credential(spec: ProviderSpec, resolver: ConfigResolver) -> Optional[str]:
    """Walk the provider's credential keys in order."""
    return resolver.first(spec.credential_keys)


class ProviderConfig(BaseModel):
    """Active text-generation provider settings, fixed for a service instance."""
    model_config = ConfigDict(frozen=True)

    provider: Provider
    base_url: str
    model: str
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    @property
    def spec(self) -> ProviderSpec:
        return PROVIDERS[self.provider]


def load_provider_config(resolver: ConfigResolver) -> ProviderConfig:
    """Build the ProviderConfig once from the resolver."""
    provider = Provider.parse(resolver.resolve("marketplace.ai.provider", Provider.OPENAI.value))
    spec = PROVIDERS[provider]
    return ProviderConfig(
        provider=provider,
        base_url=resolver.resolve("marketplace.ai.api.base", spec.base_url),
        model=resolver.resolve("marketplace.ai.model", spec.model),
        timeout_seconds=resolver.resolve_int("marketplace.ai.timeout.seconds", DEFAULT_TIMEOUT_SECONDS),
        system_prompt=resolver.resolve("marketplace.ai.system.prompt", DEFAULT_SYSTEM_PROMPT),
    )
