"""
Application configuration with layered loading.

Every named setting is resolved through the same precedence chain
(highest to lowest, first non-blank value wins):
1. Explicit runtime overrides passed to ConfigResolver
2. Environment variables (``marketplace.ai.model`` -> ``MARKETPLACE_AI_MODEL``)
3. The ``default_properties`` table of config.yml
4. The default supplied by the caller

Sub-configurations below are assembled once at import time and exposed
through the ``settings`` singleton.
"""
import os
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load .env file first so its values show up as environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def _find_project_root() -> Path:
    """Find the project root directory."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "config.example.yml").exists() or (parent / "pyproject.toml").exists():
            return parent
    return Path(os.getenv("MARKETPLACE_ROOT", os.getcwd()))


def _load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """Load configuration from YAML file if it exists."""
    if not config_path.exists():
        logger.debug(f"Config file not found: {config_path}")
        return {}

    try:
        import yaml
        with open(config_path, 'r', encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except Exception as e:
        logger.error(f"Error loading config file {config_path}: {e}")
        return {}


def _get_nested(d: Dict, *keys, default=None):
    """Safely get a nested dictionary value."""
    for key in keys:
        if isinstance(d, dict):
            d = d.get(key, default)
        else:
            return default
    return d if d is not None else default


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def to_env_name(name: str) -> str:
    """Map a dotted setting name to its environment variable name."""
    return name.replace(".", "_").replace("-", "_").upper()


def _load_default_properties(yaml_config: Dict[str, Any]) -> Dict[str, str]:
    """Flatten the ``default_properties`` section into a name -> string table."""
    table = _get_nested(yaml_config, "default_properties", default={})
    if not isinstance(table, dict):
        logger.warning("default_properties in config.yml is not a mapping, ignoring it")
        return {}
    return {str(name): str(value) for name, value in table.items() if value is not None}


# Find project root and load YAML config
PROJECT_ROOT = _find_project_root()
YAML_CONFIG = _load_yaml_config(PROJECT_ROOT / "config.yml")
DEFAULT_PROPERTIES = _load_default_properties(YAML_CONFIG)


class ConfigResolver:
    """Resolves named settings through override -> env -> default property -> default.

    The resolver holds no cache of its own: every lookup reads the backing
    stores, so it is safe to share between concurrent requests.
    """

    def __init__(
        self,
        overrides: Optional[Mapping[str, str]] = None,
        default_properties: Optional[Mapping[str, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._overrides = dict(overrides or {})
        self._default_properties = (
            dict(default_properties) if default_properties is not None else DEFAULT_PROPERTIES
        )
        self._environ = environ

    def _layers(self, name: str):
        environ = self._environ if self._environ is not None else os.environ
        yield "override", self._overrides.get(name)
        yield "env", environ.get(to_env_name(name))
        yield "default_property", self._default_properties.get(name)

    def resolve(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first non-blank value for ``name``, or ``default``."""
        for _, value in self._layers(name):
            if not _is_blank(value):
                return str(value)
        return default

    def source(self, name: str) -> str:
        """Report which layer supplies ``name``.

        Returns 'override', 'env', 'default_property', or 'default'.
        """
        for layer, value in self._layers(name):
            if not _is_blank(value):
                return layer
        return "default"

    def resolve_int(self, name: str, default: int) -> int:
        """Resolve an integer setting, falling back to ``default`` on bad input."""
        value = self.resolve(name)
        if _is_blank(value):
            return default
        try:
            return int(value.strip())
        except ValueError:
            logger.warning(f"Setting {name}={value!r} is not an integer, using {default}")
            return default

    def first(self, names: Iterable[str]) -> Optional[str]:
        """Return the value of the first name in ``names`` that resolves."""
        for name in names:
            value = self.resolve(name)
            if value is not None:
                return value
        return None


# Process-wide resolver backed by the real environment and config.yml
resolver = ConfigResolver()


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = resolver.resolve("marketplace.log.level", "INFO")
    logs_path: Path = Path(resolver.resolve("marketplace.logs.path", str(PROJECT_ROOT / "logs")))


class TelegramConfig(BaseModel):
    """Messaging platform file API configuration."""
    bot_token: str = resolver.resolve("mcp.telegram.bot.token", "")
    api_base: str = resolver.resolve("mcp.telegram.api.base", "https://api.telegram.org")


class StorageConfig(BaseModel):
    """Dialog storage configuration."""
    db_path: Path = Path(resolver.resolve("marketplace.storage.path", str(PROJECT_ROOT / "data" / "dialog.db")))
    context_messages: int = resolver.resolve_int("marketplace.context.messages", 3)


class ServiceConfig(BaseModel):
    """Business (listing/matching) service configuration."""
    marketplace_url: str = resolver.resolve("marketplace.service.url", "http://localhost:8090")
    timeout_seconds: int = resolver.resolve_int("marketplace.service.timeout.seconds", 30)


class AuthConfig(BaseModel):
    """Inbound API authentication."""
    api_key: Optional[str] = resolver.resolve("marketplace.api.key")


class Settings(BaseModel):
    """
    Application settings with layered configuration.

    Provider selection lives in ProviderConfig (see
    ``marketplace_agent.services.providers.registry``); everything else
    the service needs at bootstrap is collected here.
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    services: ServiceConfig = Field(default_factory=ServiceConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    @property
    def api_key(self) -> Optional[str]:
        return self.auth.api_key


# Create singleton instance
settings = Settings()


def get_config_source(key: str) -> str:
    """Get the layer that supplies a configuration value."""
    return resolver.source(key)
