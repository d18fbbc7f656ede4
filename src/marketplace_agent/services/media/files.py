"""Messaging platform file API client (Telegram Bot API)."""
from typing import Mapping, Optional

import httpx
from pydantic import BaseModel, ValidationError

from marketplace_agent.core.logging import logger
from marketplace_agent.services.http import join_endpoint


def attachment_value(attachment: Optional[Mapping], *keys: str):
    """First non-None value among ``keys`` (snake_case and camelCase spellings)."""
    if not attachment:
        return None
    for key in keys:
        value = attachment.get(key)
        if value is not None:
            return value
    return None


def file_id_of(attachment: Optional[Mapping]) -> Optional[str]:
    file_id = attachment_value(attachment, "file_id", "fileId")
    return str(file_id) if file_id else None


class TelegramFile(BaseModel):
    file_id: Optional[str] = None
    file_path: Optional[str] = None
    file_size: Optional[int] = None


class GetFileResponse(BaseModel):
    ok: bool = False
    result: Optional[TelegramFile] = None
    description: Optional[str] = None


class TelegramFileClient:
    """Resolves Telegram file ids into download URLs and fetches the bytes."""

    def __init__(
        self,
        bot_token: str,
        api_base: str = "https://api.telegram.org",
        client: Optional[httpx.Client] = None,
        timeout: float = 30,
    ):
        self.bot_token = bot_token or ""
        self.api_base = api_base
        self.client = client or httpx.Client(timeout=timeout)
        self.timeout = timeout

    def get_file_url(self, file_id: str) -> Optional[str]:
        """Look up the file path for ``file_id`` and build its download URL."""
        if not self.bot_token:
            logger.warning("Telegram bot token not configured")
            return None
        if not file_id:
            return None

        try:
            response = self.client.get(
                join_endpoint(self.api_base, f"bot{self.bot_token}/getFile"),
                params={"file_id": file_id},
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(f"getFile request failed for {file_id}: {e}")
            return None

        if response.status_code != 200:
            logger.warning(f"Failed to get file info: HTTP {response.status_code}")
            return None

        try:
            info = GetFileResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning(f"Unexpected getFile response for {file_id}: {e}")
            return None

        if not info.ok or info.result is None or not info.result.file_path:
            logger.warning(f"Could not extract file path for {file_id}: {info.description or 'no file_path'}")
            return None

        return join_endpoint(self.api_base, f"file/bot{self.bot_token}/{info.result.file_path}")

    def download_bytes(self, url: str) -> Optional[bytes]:
        """Download a file; None on any failure."""
        try:
            response = self.client.get(url, timeout=self.timeout)
        except Exception as e:
            logger.warning(f"File download failed: {e}")
            return None
        if response.status_code != 200:
            logger.warning(f"Failed to download file: HTTP {response.status_code}")
            return None
        return response.content


class MediaFile:
    """A resolved attachment: its URL plus bytes fetched on first use."""

    def __init__(self, file_id: str, url: str, files: TelegramFileClient):
        self.file_id = file_id
        self.url = url
        self._files = files
        self._data: Optional[bytes] = None
        self._fetched = False

    def load(self) -> Optional[bytes]:
        if not self._fetched:
            self._data = self._files.download_bytes(self.url)
            self._fetched = True
        return self._data
