"""Non-text message handlers - voice, photo and document replies.

These run instead of the business handlers: the reply is composed locally
from the recognition result and no listing action is taken.
"""
from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

from marketplace_agent.services.intent.language import display_label
from marketplace_agent.services.intent.router import (
    DOCUMENT_PROCESSING,
    IMAGE_PROCESSING,
    VOICE_PROCESSING,
    Intent,
    IntentClassifier,
    intent_classifier,
)
from marketplace_agent.services.media.files import attachment_value
from marketplace_agent.services.media.transcription import TranscriptionPipeline
from marketplace_agent.services.media.vision import VisionPipeline

PHOTO_PLACEHOLDER_CAPTION = "[Photo Message]"
DOCUMENT_PLACEHOLDER_PREFIX = "[Document:"


def unsupported_media_reply(message_type: str) -> str:
    return f"收到您的{message_type}消息，目前系统正在学习处理这种类型的内容。请您用文字描述您的需求。"


class MediaHandler(ABC):
    """Builds the reply for one family of attachment types."""

    # Message types this handler can process
    actions: List[str] = []
    intent_label: str = ""

    @abstractmethod
    def reply(self, caption: str, attachment: Mapping) -> str:
        """Compose the user-facing reply for the attachment."""

    def can_handle(self, action: str) -> bool:
        return action in self.actions


class VoiceMessageHandler(MediaHandler):
    actions = ["voice", "audio"]
    intent_label = VOICE_PROCESSING

    def __init__(self, transcription: TranscriptionPipeline, classifier: IntentClassifier = intent_classifier):
        self.transcription = transcription
        self.classifier = classifier

    def reply(self, caption: str, attachment: Mapping) -> str:
        parts = ["🎙️ 收到您的语音消息"]
        duration = attachment_value(attachment, "duration")
        if duration is not None:
            parts.append(f"（时长: {duration}秒）")
        parts.append("！\n\n")

        transcript = self.transcription.transcribe(attachment)
        if transcript is None or not transcript.text:
            parts.append(self._unrecognized())
            return "".join(parts)

        parts.append("🔊 **语音内容识别**：\n")
        parts.append(f"\"{transcript.text}\"\n\n")
        parts.append(f"🌐 **语言检测**: {display_label(transcript.language)}\n\n")
        parts.append("🎯 **智能分析**：\n")
        parts.append(self._next_steps(self.classifier.classify(transcript.text)))
        return "".join(parts)

    def _next_steps(self, intent: Intent) -> str:
        if intent is Intent.PUBLISH_SUPPLY:
            return (
                "✅ 检测到供应信息发布需求\n"
                "我将帮您整理产品信息并发布到平台\n\n"
                "📋 请确认以下信息：\n"
                "• 产品名称 (Product Name)\n• 供应数量 (Supply Quantity)\n"
                "• 价格范围 (Price Range)\n• 供应地区 (Supply Region)\n\n"
                "💬 回复\"确认发布\"开始详细填写\n"
                "💬 Reply \"Confirm\" to start detailed input"
            )
        if intent is Intent.PUBLISH_DEMAND:
            return (
                "✅ 检测到采购需求\n"
                "我将帮您匹配合适的供应商\n\n"
                "📋 请确认采购信息：\n"
                "• 需求产品 (Required Product)\n• 采购数量 (Purchase Quantity)\n"
                "• 预算范围 (Budget Range)\n• 交付时间 (Delivery Time)\n\n"
                "💬 回复\"确认采购\"开始精准匹配\n"
                "💬 Reply \"Purchase\" to start matching"
            )
        if intent is Intent.SEARCH_LISTINGS:
            return (
                "✅ 检测到产品搜索需求\n"
                "正在为您搜索相关产品...\n\n"
                "💬 回复\"查看结果\"显示搜索结果\n"
                "💬 Reply \"Results\" to show search results"
            )
        return (
            "💭 已理解您的语音内容\n"
            "请问您希望：\n"
            "📦 发布供应信息 (Publish Supply)\n"
            "🛒 发布采购需求 (Publish Demand)\n"
            "🔍 搜索产品信息 (Search Products)\n\n"
            "💬 直接回复您的选择即可\n"
            "💬 Simply reply with your choice"
        )

    def _unrecognized(self) -> str:
        return (
            "🔄 正在尝试识别语音内容...\n"
            "🔄 Attempting to recognize speech content...\n\n"
            "如果识别有困难，请您：\n"
            "If recognition is difficult, please:\n"
            "📝 **重新用文字描述** (Describe in text)\n"
            "• 您要发布供应信息吗？(Want to publish supply?)\n"
            "• 您要采购某种产品吗？(Want to purchase products?)\n"
            "• 您想查看匹配建议吗？(Want to view matches?)\n\n"
            "💡 提示：说话清晰一些，支持中英文混合语音\n"
            "💡 Tip: Speak clearly, mixed Chinese-English is supported"
        )


class PhotoMessageHandler(MediaHandler):
    actions = ["photo"]
    intent_label = IMAGE_PROCESSING

    def __init__(self, vision: VisionPipeline):
        self.vision = vision

    def reply(self, caption: str, attachment: Mapping) -> str:
        parts = ["📷 收到您的图片"]
        width = attachment_value(attachment, "width")
        height = attachment_value(attachment, "height")
        if width is not None and height is not None:
            parts.append(f"（{width}x{height}）")
        parts.append("！\n\n")

        if caption and caption != PHOTO_PLACEHOLDER_CAPTION:
            parts.append(f"📝 您的描述：\"{caption}\"\n\n")

        analysis = self.vision.analyze(attachment)
        if analysis is None or not analysis.description:
            parts.append(self._unrecognized())
            return "".join(parts)

        parts.append("🔍 **图片内容识别**：\n")
        parts.append(f"{analysis.description}\n\n")
        if analysis.category:
            parts.append(self._category_suggestions(analysis.category))
        parts.append(
            "💡 **下一步操作**：\n"
            "请告诉我这张图片的用途：\n"
            "🔹 产品展示 (Product Display)\n"
            "🔹 质量检测 (Quality Check)\n"
            "🔹 规格说明 (Specification)\n"
            "🔹 价格对比 (Price Comparison)\n"
        )
        return "".join(parts)

    def _category_suggestions(self, category: str) -> str:
        return (
            f"🎯 **产品识别**：{category}\n\n"
            "📋 **智能建议**：\n"
            f"• 如果要发布供应：回复\"发布供应 {category}\"\n"
            f"• 如果要采购此类产品：回复\"采购需求 {category}\"\n"
            f"• 查看市场价格：回复\"价格查询 {category}\"\n\n"
        )

    def _unrecognized(self) -> str:
        return (
            "🔄 正在尝试识别图片内容...\n\n"
            "我正在学习图像识别技术，目前可以：\n"
            "• 识别图片基本信息（尺寸、格式）\n"
            "• 读取图片说明文字\n"
            "• 提供智能业务引导\n\n"
            "请您补充文字信息：\n"
            "🔹 **这是什么产品的图片？** (What product is this?)\n"
            "🔹 **您的目的是什么？** (Purpose: Supply/Purchase)\n"
            "🔹 **具体规格要求？** (Specific requirements)\n"
            "🔹 **地区要求？** (Regional requirements)\n\n"
            "💡 提示：配置图片识别API后可自动分析产品信息\n"
            "💡 Tip: Configure image recognition API for automatic analysis"
        )


class DocumentMessageHandler(MediaHandler):
    actions = ["document"]
    intent_label = DOCUMENT_PROCESSING

    def reply(self, caption: str, attachment: Mapping) -> str:
        parts = ["📄 收到您的文档"]
        file_name: Optional[str] = attachment_value(attachment, "file_name", "fileName")
        if file_name is not None:
            parts.append(f"：{file_name}")
        parts.append("！\n\n")

        if caption and not caption.startswith(DOCUMENT_PLACEHOLDER_PREFIX):
            parts.append(f"📝 您的说明：\"{caption}\"\n\n")

        parts.append(
            "我正在学习文档处理技术，目前可以：\n"
            "• 识别文档基本信息（文件名、大小、格式）\n"
            "• 读取文档说明文字\n"
            "• 提供业务流程引导\n\n"
            "请您告诉我这个文档的用途：\n"
            "📋 **产品规格书** - 我将帮您发布详细的供应信息\n"
            "📋 **采购清单** - 我将帮您匹配合适的供应商\n"
            "📋 **报价单** - 我将为您分析市场价格趋势\n"
            "📋 **合同文件** - 我将记录您的交易进展\n\n"
            "💡 未来版本将支持文档内容解析和智能摘要！"
        )
        return "".join(parts)
