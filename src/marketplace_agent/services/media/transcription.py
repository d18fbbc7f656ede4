"""Speech-to-text with provider fallback.

Zhipu (not yet offered upstream) -> Baidu bilingual -> Aliyun (pending),
then a deterministic demo transcript when nothing answers.
"""
import base64
from dataclasses import dataclass
from typing import List, Mapping, Optional

import httpx
from pydantic import BaseModel, ValidationError

from marketplace_agent.core.config import ConfigResolver
from marketplace_agent.core.errors import (
    MissingCredentialError,
    ProviderError,
    ProviderUnavailableError,
)
from marketplace_agent.core.logging import logger
from marketplace_agent.services.http import post_json
from marketplace_agent.services.intent.language import contains_english_words, detect_language
from marketplace_agent.services.media.baidu import BaiduTokenClient
from marketplace_agent.services.media.demo import demo_transcript
from marketplace_agent.services.media.files import MediaFile, TelegramFileClient, file_id_of
from marketplace_agent.services.stages import StageResult, guard, run_chain

BAIDU_SPEECH_URL = "https://vop.baidu.com/server_api"
BAIDU_CUID = "moqui-marketplace"

# Baidu dev_pid per language
MANDARIN_PID = 1536
ENGLISH_PID = 1737


@dataclass
class Transcription:
    text: str
    language: str
    provider: str
    is_demo: bool = False


class BaiduSpeechResponse(BaseModel):
    err_no: int = 0
    err_msg: Optional[str] = None
    result: List[str] = []


class TranscriptionPipeline:
    """Turns a voice attachment into text."""

    def __init__(
        self,
        files: TelegramFileClient,
        resolver: ConfigResolver,
        client: Optional[httpx.Client] = None,
        timeout: float = 30,
    ):
        self.files = files
        self.resolver = resolver
        self.timeout = timeout
        self.client = client or httpx.Client(timeout=timeout)
        self.tokens = BaiduTokenClient(self.client, timeout=timeout)
        self.stages = [
            ("zhipu_speech", self._zhipu_stage),
            ("baidu_speech", self._baidu_stage),
            ("aliyun_speech", self._aliyun_stage),
        ]

    def transcribe(self, attachment: Optional[Mapping]) -> Optional[Transcription]:
        """Return the transcript of the attachment, or None without a file id."""
        file_id = file_id_of(attachment)
        if not file_id:
            logger.warning("Voice message has no file id")
            return None

        url = self.files.get_file_url(file_id)
        if url:
            result = run_chain(self.stages, MediaFile(file_id, url, self.files))
            if result.ok:
                text = result.value.strip()
                return Transcription(text, detect_language(text), result.stage)
            logger.warning("All speech-to-text providers failed, falling back to demo transcript")
        else:
            logger.warning("Failed to get audio download URL, falling back to demo transcript")

        text = demo_transcript(file_id)
        logger.info(f"Demo transcript for {file_id}: {text}")
        return Transcription(text, detect_language(text), "demo", is_demo=True)

    def _download(self, provider: str, media: MediaFile) -> bytes:
        data = media.load()
        if not data:
            raise ProviderUnavailableError(provider, "audio download failed")
        return data

    # Zhipu

    def _zhipu_stage(self, media: MediaFile) -> StageResult[str]:
        return guard("zhipu_speech", lambda: self._zhipu_transcribe(media))

    def _zhipu_transcribe(self, media: MediaFile) -> Optional[str]:
        api_key = self.resolver.resolve("zhipu.api.key")
        if not api_key:
            raise MissingCredentialError("zhipu_speech", "zhipu.api.key not configured")
        self._download("zhipu_speech", media)
        logger.info("Zhipu speech API not available yet, trying next provider")
        return None

    # Baidu

    def _baidu_stage(self, media: MediaFile) -> StageResult[str]:
        return guard("baidu_speech", lambda: self._baidu_transcribe(media))

    def _baidu_transcribe(self, media: MediaFile) -> Optional[str]:
        api_key = self.resolver.resolve("baidu.speech.api.key")
        secret_key = self.resolver.resolve("baidu.speech.secret.key")
        if not api_key or not secret_key:
            raise MissingCredentialError("baidu_speech", "baidu.speech credentials not configured")

        token = self.tokens.fetch("baidu_speech", api_key, secret_key)
        audio = self._download("baidu_speech", media)

        chinese = self._baidu_recognize(audio, token, MANDARIN_PID)
        if not chinese or not chinese.strip():
            english = self._baidu_recognize(audio, token, ENGLISH_PID)
            if english:
                logger.info("Baidu speech detected English content")
            return english

        if contains_english_words(chinese):
            english = self._baidu_recognize(audio, token, ENGLISH_PID)
            if english and english != chinese:
                logger.info("Baidu speech detected mixed Chinese-English content")
                return f"{chinese} {english}"
        return chinese

    def _baidu_recognize(self, audio: bytes, token: str, dev_pid: int) -> Optional[str]:
        """One recognition call; a failure here only loses this language."""
        body = {
            "format": "wav",
            "rate": 16000,
            "channel": 1,
            "cuid": BAIDU_CUID,
            "token": token,
            "speech": base64.b64encode(audio).decode("ascii"),
            "len": len(audio),
            "dev_pid": dev_pid,
        }
        try:
            data = post_json(self.client, "baidu_speech", BAIDU_SPEECH_URL, body, timeout=self.timeout)
            parsed = BaiduSpeechResponse.model_validate(data)
        except (ProviderError, ValidationError) as e:
            logger.warning(f"Baidu speech recognition failed for dev_pid {dev_pid}: {e}")
            return None

        if parsed.err_no != 0 or not parsed.result:
            logger.debug(f"Baidu speech dev_pid {dev_pid} returned no result: {parsed.err_no} {parsed.err_msg}")
            return None
        return parsed.result[0]

    # Aliyun

    def _aliyun_stage(self, media: MediaFile) -> StageResult[str]:
        return guard("aliyun_speech", lambda: self._aliyun_transcribe(media))

    def _aliyun_transcribe(self, media: MediaFile) -> Optional[str]:
        key_id = self.resolver.resolve("aliyun.speech.access.key.id")
        key_secret = self.resolver.resolve("aliyun.speech.access.key.secret")
        if not key_id or not key_secret:
            raise MissingCredentialError("aliyun_speech", "aliyun.speech credentials not configured")
        # TODO: real-time recognition needs the Aliyun NLS token + websocket flow
        logger.debug("Aliyun speech integration pending")
        return None
