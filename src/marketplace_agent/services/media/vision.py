"""Image recognition with provider fallback.

Zhipu GLM-4V -> Baidu general object recognition -> Aliyun (pending) ->
Google Cloud Vision, then a deterministic demo description.
"""
import base64
from dataclasses import dataclass
from typing import List, Mapping, Optional

import httpx
from pydantic import BaseModel, Field

from marketplace_agent.core.config import ConfigResolver
from marketplace_agent.core.errors import (
    MissingCredentialError,
    ProviderUnavailableError,
    UnparsableResponseError,
)
from marketplace_agent.core.logging import logger
from marketplace_agent.services.http import post_json
from marketplace_agent.services.media.baidu import BaiduTokenClient
from marketplace_agent.services.media.demo import demo_image_description
from marketplace_agent.services.media.files import MediaFile, TelegramFileClient, file_id_of
from marketplace_agent.services.providers.text import ChatCompletionResponse
from marketplace_agent.services.stages import StageResult, guard, run_chain

ZHIPU_VISION_URL = "https://open.bigmodel.cn/api/paas/v4/chat/completions"
ZHIPU_VISION_MODEL = "glm-4v-plus"
ZHIPU_VISION_INSTRUCTION = (
    "请分析这张图片，识别其中的产品、材料或物品。重点识别工业材料、机械设备、建筑材料或商业产品。请用中文描述。"
)
BAIDU_VISION_URL = "https://aip.baidubce.com/rest/2.0/image-classify/v2/advanced_general"
GOOGLE_VISION_URL = "https://vision.googleapis.com/v1/images:annotate"

MAX_LABELS = 5

DEFAULT_CATEGORY = "工业产品"

CATEGORY_KEYWORDS = (
    ("钢材/金属材料", ("steel", "metal", "钢材", "金属", "iron", "铁")),
    ("建筑材料", ("concrete", "cement", "混凝土", "水泥", "brick", "砖")),
    ("机械设备", ("machine", "equipment", "机械", "设备", "tool", "工具")),
    ("电子产品", ("electronic", "computer", "电子", "计算机", "phone", "手机")),
    ("化工产品", ("chemical", "plastic", "化工", "塑料")),
    ("农产品", ("food", "grain", "食品", "粮食", "vegetable", "蔬菜")),
)


def extract_product_category(description: Optional[str]) -> Optional[str]:
    """Map an image description to a coarse product category."""
    if description is None:
        return None
    text = description.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


@dataclass
class ImageAnalysis:
    description: str
    category: Optional[str]
    provider: str
    is_demo: bool = False


class BaiduVisionItem(BaseModel):
    keyword: Optional[str] = None
    score: Optional[float] = None
    root: Optional[str] = None


class BaiduVisionResponse(BaseModel):
    result: List[BaiduVisionItem] = []
    error_code: Optional[int] = None
    error_msg: Optional[str] = None


class GoogleAnnotation(BaseModel):
    description: Optional[str] = None


class GoogleImageResult(BaseModel):
    label_annotations: List[GoogleAnnotation] = Field(default_factory=list, alias="labelAnnotations")
    text_annotations: List[GoogleAnnotation] = Field(default_factory=list, alias="textAnnotations")


class GoogleVisionResponse(BaseModel):
    responses: List[GoogleImageResult] = []


def _bullet_list(header: str, labels: List[str]) -> Optional[str]:
    labels = [label for label in labels if label][:MAX_LABELS]
    if not labels:
        return None
    return header + "".join(f"• {label}\n" for label in labels)


def parse_baidu_labels(data: dict) -> Optional[str]:
    parsed = BaiduVisionResponse.model_validate(data)
    if parsed.error_code:
        raise UnparsableResponseError("baidu_vision", f"error {parsed.error_code}: {parsed.error_msg}")
    return _bullet_list("识别到的物体：\n", [item.keyword for item in parsed.result])


def parse_google_labels(data: dict) -> Optional[str]:
    parsed = GoogleVisionResponse.model_validate(data)
    labels = []
    for result in parsed.responses:
        labels.extend(a.description for a in result.label_annotations)
        labels.extend(a.description for a in result.text_annotations)
    return _bullet_list("识别到的内容：\n", labels)


class VisionPipeline:
    """Turns a photo attachment into a product description."""

    def __init__(
        self,
        files: TelegramFileClient,
        resolver: ConfigResolver,
        client: Optional[httpx.Client] = None,
        timeout: float = 60,
    ):
        self.files = files
        self.resolver = resolver
        self.timeout = timeout
        self.client = client or httpx.Client(timeout=timeout)
        self.tokens = BaiduTokenClient(self.client, timeout=timeout)
        self.stages = [
            ("zhipu_vision", self._zhipu_stage),
            ("baidu_vision", self._baidu_stage),
            ("aliyun_vision", self._aliyun_stage),
            ("google_vision", self._google_stage),
        ]

    def analyze(self, attachment: Optional[Mapping]) -> Optional[ImageAnalysis]:
        """Describe the attached image, or None without a file id."""
        file_id = file_id_of(attachment)
        if not file_id:
            logger.warning("Image message has no file id")
            return None

        url = self.files.get_file_url(file_id)
        if url:
            result = run_chain(self.stages, MediaFile(file_id, url, self.files))
            if result.ok:
                description = result.value.strip()
                return ImageAnalysis(description, extract_product_category(description), result.stage)
            logger.warning("All image recognition providers failed, falling back to demo analysis")
        else:
            logger.warning("Failed to get image download URL, falling back to demo analysis")

        description = demo_image_description(file_id)
        logger.info(f"Demo image analysis for {file_id}: {description}")
        return ImageAnalysis(description, extract_product_category(description), "demo", is_demo=True)

    def _image_base64(self, provider: str, media: MediaFile) -> str:
        data = media.load()
        if not data:
            raise ProviderUnavailableError(provider, "image download failed")
        return base64.b64encode(data).decode("ascii")

    # Zhipu GLM-4V

    def _zhipu_stage(self, media: MediaFile) -> StageResult[str]:
        return guard("zhipu_vision", lambda: self._zhipu_analyze(media))

    def _zhipu_analyze(self, media: MediaFile) -> Optional[str]:
        api_key = self.resolver.resolve("zhipu.api.key")
        if not api_key:
            raise MissingCredentialError("zhipu_vision", "zhipu.api.key not configured")

        image = self._image_base64("zhipu_vision", media)
        body = {
            "model": self.resolver.resolve("image.recognition.zhipu.model", ZHIPU_VISION_MODEL),
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": ZHIPU_VISION_INSTRUCTION},
                        {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image}"}},
                    ],
                }
            ],
            "temperature": 0.1,
        }
        data = post_json(
            self.client,
            "zhipu_vision",
            ZHIPU_VISION_URL,
            body,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=self.timeout,
        )
        parsed = ChatCompletionResponse.model_validate(data)
        if not parsed.choices:
            raise UnparsableResponseError("zhipu_vision", "response has no choices")
        return parsed.choices[0].message.content

    # Baidu

    def _baidu_stage(self, media: MediaFile) -> StageResult[str]:
        return guard("baidu_vision", lambda: self._baidu_analyze(media))

    def _baidu_analyze(self, media: MediaFile) -> Optional[str]:
        api_key = self.resolver.resolve("baidu.vision.api.key")
        secret_key = self.resolver.resolve("baidu.vision.secret.key")
        if not api_key or not secret_key:
            raise MissingCredentialError("baidu_vision", "baidu.vision credentials not configured")

        token = self.tokens.fetch("baidu_vision", api_key, secret_key)
        image = self._image_base64("baidu_vision", media)
        data = post_json(
            self.client,
            "baidu_vision",
            BAIDU_VISION_URL,
            {"image": image, "baike_num": 5},
            params={"access_token": token},
            timeout=self.timeout,
        )
        return parse_baidu_labels(data)

    # Aliyun

    def _aliyun_stage(self, media: MediaFile) -> StageResult[str]:
        return guard("aliyun_vision", lambda: self._aliyun_analyze(media))

    def _aliyun_analyze(self, media: MediaFile) -> Optional[str]:
        key_id = self.resolver.resolve("aliyun.vision.access.key.id")
        key_secret = self.resolver.resolve("aliyun.vision.access.key.secret")
        if not key_id or not key_secret:
            raise MissingCredentialError("aliyun_vision", "aliyun.vision credentials not configured")
        logger.debug("Aliyun vision integration pending")
        return None

    # Google Cloud Vision

    def _google_stage(self, media: MediaFile) -> StageResult[str]:
        return guard("google_vision", lambda: self._google_analyze(media))

    def _google_analyze(self, media: MediaFile) -> Optional[str]:
        api_key = self.resolver.resolve("google.vision.api.key")
        if not api_key:
            raise MissingCredentialError("google_vision", "google.vision.api.key not configured")

        image = self._image_base64("google_vision", media)
        body = {
            "requests": [
                {
                    "image": {"content": image},
                    "features": [
                        {"type": "LABEL_DETECTION", "maxResults": 10},
                        {"type": "TEXT_DETECTION", "maxResults": 5},
                    ],
                }
            ]
        }
        data = post_json(
            self.client, "google_vision", GOOGLE_VISION_URL, body, params={"key": api_key}, timeout=self.timeout
        )
        return parse_google_labels(data)
