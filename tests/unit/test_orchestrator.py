"""Unit tests for DialogueOrchestrator and HandlerRegistry."""
import sqlite3

import httpx
import pytest
from unittest.mock import MagicMock, Mock

from marketplace_agent.services.chat.handlers.media import unsupported_media_reply
from marketplace_agent.services.chat.orchestrator import (
    MULTIMODAL_APOLOGY,
    MULTIMODAL_ERROR,
    PROCESSING_APOLOGY,
    DialogueOrchestrator,
    HandlerRegistry,
)
from marketplace_agent.services.llm import TextGenerationGateway
from marketplace_agent.services.local_responder import local_reply
from marketplace_agent.services.media.demo import demo_image_description, demo_transcript
from marketplace_agent.services.media.files import TelegramFileClient
from marketplace_agent.services.media.transcription import TranscriptionPipeline
from marketplace_agent.services.media.vision import VisionPipeline
from marketplace_agent.services.providers.registry import load_provider_config
from marketplace_agent.services.storage import Session

pytestmark = pytest.mark.unit


@pytest.fixture
def offline_client(offline_transport):
    return offline_transport.client()


@pytest.fixture
def pipelines(empty_resolver, offline_client):
    """Speech and vision pipelines with no bot token, so every attachment gets a demo result."""
    files = TelegramFileClient("", client=offline_client)
    return (
        TranscriptionPipeline(files, empty_resolver, client=offline_client),
        VisionPipeline(files, empty_resolver, client=offline_client),
    )


@pytest.fixture
def gateway(empty_resolver, offline_client):
    return TextGenerationGateway(load_provider_config(empty_resolver), empty_resolver, client=offline_client)


@pytest.fixture
def orchestrator(dialog_store, mock_marketplace, gateway, pipelines):
    transcription, vision = pipelines
    return DialogueOrchestrator(
        store=dialog_store,
        marketplace=mock_marketplace,
        gateway=gateway,
        transcription=transcription,
        vision=vision,
    )


class TestHandlerRegistry:
    def test_register_and_lookup(self):
        registry = HandlerRegistry()
        handler = Mock(actions=["a", "b"])
        registry.register(handler)

        assert registry.get_handler("a") is handler
        assert registry.get_handler("b") is handler
        assert registry.get_handler("c") is None

    def test_later_registration_overwrites(self):
        registry = HandlerRegistry()
        first, second = Mock(actions=["a"]), Mock(actions=["a"])
        registry.register(first)
        registry.register(second)

        assert registry.get_handler("a") is second

    def test_clear(self):
        registry = HandlerRegistry()
        registry.register(Mock(actions=["a"]))
        registry.clear()

        assert registry.list_handlers() == {}

    def test_orchestrator_registrations(self, orchestrator):
        assert set(orchestrator.handlers.list_handlers()) == {
            "PUBLISH_SUPPLY", "PUBLISH_DEMAND", "SEARCH_LISTINGS", "VIEW_MATCHES", "GET_STATS", "GENERAL_CHAT",
        }
        assert set(orchestrator.media_handlers.list_handlers()) == {"voice", "audio", "photo", "document"}


class TestTextMessages:
    """Text path: classify, dispatch, generate, persist."""

    def test_supply_message_end_to_end(self, orchestrator, dialog_store):
        content = "我要发布钢材供应100吨"

        result = orchestrator.process_message("s-1", "m-1", "text", content)

        assert result["intent"] == "PUBLISH_SUPPLY"
        assert result["ai_response"] == local_reply(content, "PUBLISH_SUPPLY")
        assert result["need_more_info"] is True
        assert "error" not in result

        assert dialog_store.find_session("s-1").merchant_id == "m-1"
        assert len(dialog_store.find_recent_messages("s-1", 10)) == 1
        saved = dialog_store.find_recent_messages("s-1", 1)[0]
        assert saved.content == content
        assert saved.message_type == "PUBLISH_SUPPLY"
        assert saved.ai_response == result["ai_response"]
        assert saved.message_id.startswith("TG_")

    def test_session_reused(self, orchestrator, dialog_store):
        orchestrator.process_message("s-1", "m-1", "text", "你好")
        orchestrator.process_message("s-1", "m-other", "text", "统计")

        assert dialog_store.find_session("s-1").merchant_id == "m-1"
        assert len(dialog_store.find_recent_messages("s-1", 10)) == 2

    def test_handler_fields_are_merged(self, orchestrator, mock_marketplace):
        mock_marketplace.find_matches.return_value = {"matches": [{"listing_id": "L-9"}]}

        result = orchestrator.process_message("s-1", "m-1", "text", "发布 菠菜 50斤 3元")

        assert result["success"] is True
        assert result["listing_id"] == "L-1"
        assert result["match_count"] == 1
        assert result["intent"] == "PUBLISH_SUPPLY"

    def test_handler_error_still_replies(self, orchestrator, mock_marketplace):
        mock_marketplace.create_listing.side_effect = RuntimeError("service down")

        result = orchestrator.process_message("s-1", "m-1", "text", "发布 菠菜 50斤")

        assert result["error"] == "处理发布供应请求失败"
        assert result["ai_response"]
        assert result["intent"] == "PUBLISH_SUPPLY"

    def test_missing_type_and_content_default_to_text(self, orchestrator):
        result = orchestrator.process_message("s-1", "m-1", None, None)

        assert result["intent"] == "GENERAL_CHAT"
        assert result["chat_mode"] is True
        assert result["ai_response"] == local_reply("", "GENERAL_CHAT")

    def test_context_includes_history_and_business_result(
        self, dialog_store, mock_marketplace, pipelines
    ):
        gateway = Mock()
        gateway.generate.return_value = "好的"
        transcription, vision = pipelines
        orchestrator = DialogueOrchestrator(dialog_store, mock_marketplace, gateway, transcription, vision)
        mock_marketplace.get_marketplace_stats.return_value = {"total_listings": 12}

        orchestrator.process_message("s-1", "m-1", "text", "你好")
        orchestrator.process_message("s-1", "m-1", "text", "市场统计")

        message, context, intent = gateway.generate.call_args[0]
        assert message == "市场统计"
        assert intent == "GET_STATS"
        assert "会话模式: GET_STATS" in context
        assert "商家ID: m-1" in context
        assert "业务结果: total_listings: 12" in context
        assert "用户: 你好" in context
        assert "助手: 好的" in context


class TestMultimodalMessages:
    """Voice, photo, document and unsupported attachments."""

    def test_voice_demo_is_deterministic(self, orchestrator, dialog_store):
        attachment = {"file_id": "abc123", "duration": 5}

        first = orchestrator.process_message("s-1", "m-1", "voice", "", attachment)
        second = orchestrator.process_message("s-2", "m-1", "voice", "", attachment)

        assert first["success"] is True
        assert first["intent"] == "voice_processing"
        assert first["message_type"] == "voice"
        assert first["attachment_info"] == attachment
        assert demo_transcript("abc123") in first["ai_response"]
        assert "（时长: 5秒）" in first["ai_response"]
        assert first["ai_response"] == second["ai_response"]

        saved = dialog_store.find_recent_messages("s-1", 1)[0]
        assert saved.content == " [VOICE]"
        assert saved.message_type == "voice_processing"

    def test_audio_type_is_voice(self, orchestrator):
        result = orchestrator.process_message("s-1", "m-1", "AUDIO", "", {"fileId": "abc123"})

        assert result["intent"] == "voice_processing"
        assert result["message_type"] == "audio"

    def test_photo(self, orchestrator, dialog_store):
        result = orchestrator.process_message(
            "s-1", "m-1", "photo", "[Photo Message]", {"file_id": "p-1", "width": 800, "height": 600}
        )

        assert result["intent"] == "image_processing"
        assert demo_image_description("p-1") in result["ai_response"]
        assert dialog_store.find_recent_messages("s-1", 1)[0].content == "[Photo Message] [PHOTO]"

    def test_document(self, orchestrator):
        result = orchestrator.process_message("s-1", "m-1", "document", "合同", {"file_name": "deal.pdf"})

        assert result["intent"] == "document_processing"
        assert "deal.pdf" in result["ai_response"]

    def test_unsupported_type(self, orchestrator, dialog_store):
        result = orchestrator.process_message("s-1", "m-1", "sticker", "", {})

        assert result["success"] is True
        assert result["intent"] == "unsupported_media"
        assert result["ai_response"] == unsupported_media_reply("sticker")
        assert len(dialog_store.find_recent_messages("s-1", 10)) == 1

    def test_media_failure(self, dialog_store, mock_marketplace, gateway, pipelines):
        transcription, _ = pipelines
        vision = Mock()
        vision.analyze.side_effect = RuntimeError("decoder crashed")
        orchestrator = DialogueOrchestrator(dialog_store, mock_marketplace, gateway, transcription, vision)

        result = orchestrator.process_message("s-1", "m-1", "photo", "", {"file_id": "p-1"})

        assert result == {
            "success": False,
            "error": MULTIMODAL_ERROR,
            "ai_response": MULTIMODAL_APOLOGY,
            "intent": "multimodal_photo",
        }

    def test_voice_skips_business_handlers(self, orchestrator, mock_marketplace):
        orchestrator.process_message("s-1", "m-1", "voice", "", {"file_id": "abc123"})

        mock_marketplace.create_listing.assert_not_called()
        mock_marketplace.find_matches.assert_not_called()


class TestFailureHandling:
    @pytest.fixture
    def broken_store(self):
        store = MagicMock()
        store.find_session.return_value = Session("s-1", "m-1")
        store.find_recent_messages.return_value = []
        store.create_dialog_message.side_effect = sqlite3.OperationalError("database is locked")
        return store

    def test_persistence_failure_is_swallowed(self, broken_store, mock_marketplace, gateway, pipelines):
        transcription, vision = pipelines
        orchestrator = DialogueOrchestrator(broken_store, mock_marketplace, gateway, transcription, vision)

        result = orchestrator.process_message("s-1", "m-1", "text", "你好")

        assert "error" not in result
        assert result["ai_response"] == local_reply("你好", "GENERAL_CHAT")
        broken_store.create_dialog_message.assert_called_once()

    def test_session_failure_returns_error_payload(self, broken_store, mock_marketplace, gateway, pipelines):
        broken_store.find_session.side_effect = sqlite3.OperationalError("no such table")
        transcription, vision = pipelines
        orchestrator = DialogueOrchestrator(broken_store, mock_marketplace, gateway, transcription, vision)

        result = orchestrator.process_message("s-1", "m-1", "text", "发布 菠菜 50斤")

        assert result == {
            "error": "处理失败: no such table",
            "ai_response": PROCESSING_APOLOGY,
            "intent": "GENERAL_CHAT",
        }

    def test_failure_after_classification_keeps_intent(self, broken_store, mock_marketplace, gateway, pipelines):
        broken_store.find_recent_messages.side_effect = sqlite3.OperationalError("disk I/O error")
        transcription, vision = pipelines
        orchestrator = DialogueOrchestrator(broken_store, mock_marketplace, gateway, transcription, vision)

        result = orchestrator.process_message("s-1", "m-1", "text", "市场统计")

        assert result["intent"] == "GET_STATS"
        assert result["error"].startswith("处理失败")
        assert result["ai_response"] == PROCESSING_APOLOGY

    @pytest.mark.parametrize("message_type,attachment_info", [
        (42, None),
        ("voice", 5),
    ])
    def test_malformed_arguments_return_error_payload(
        self, orchestrator, dialog_store, message_type, attachment_info
    ):
        result = orchestrator.process_message("s-1", "m-1", message_type, "hi", attachment_info)

        assert result["error"].startswith("处理失败: ")
        assert result["ai_response"] == PROCESSING_APOLOGY
        assert result["intent"] == "GENERAL_CHAT"
        assert dialog_store.find_session("s-1") is None
