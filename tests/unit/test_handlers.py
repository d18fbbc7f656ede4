"""Unit tests for marketplace intent handlers and media handlers."""
import pytest
from unittest.mock import Mock

from marketplace_agent.core.errors import MarketplaceServiceError
from marketplace_agent.services.chat.handlers import (
    ChatContext,
    DocumentMessageHandler,
    GeneralChatHandler,
    MarketplaceStatsHandler,
    PhotoMessageHandler,
    PublishDemandHandler,
    PublishSupplyHandler,
    SearchListingsHandler,
    ViewMatchesHandler,
    VoiceMessageHandler,
)
from marketplace_agent.services.chat.handlers.listing import extract_product_info, missing_fields
from marketplace_agent.services.chat.handlers.media import unsupported_media_reply
from marketplace_agent.services.media.transcription import Transcription
from marketplace_agent.services.media.vision import ImageAnalysis

pytestmark = pytest.mark.unit


def make_context(message, intent="GENERAL_CHAT"):
    return ChatContext(session_id="s-1", merchant_id="m-1", message=message, intent=intent)


# ============================================================================
# Listing Handlers Tests
# ============================================================================

class TestExtractProductInfo:
    def test_full_message(self):
        info = extract_product_info("发布 菠菜 50斤 3元")

        assert info == {
            "quantity": "50",
            "quantity_unit": "斤",
            "price_min": "3",
            "title": "菠菜",
            "category": "VEGETABLE",
        }

    def test_tokens_must_stand_alone(self):
        """Quantities glued to other words are not picked up."""
        info = extract_product_info("白菜50公斤")
        assert "quantity" not in info
        assert info["title"] == "白菜"

    def test_kilogram_and_kuai(self):
        info = extract_product_info("萝卜 20公斤 8块")
        assert info["quantity_unit"] == "公斤"
        assert info["price_min"] == "8"

    def test_missing_fields(self):
        assert missing_fields({}) == ["商品名称", "数量", "品类"]
        assert missing_fields({"title": "菠菜", "category": "VEGETABLE"}) == ["数量"]


class TestPublishSupplyHandler:
    """Tests for PublishSupplyHandler."""

    @pytest.fixture
    def handler(self, mock_marketplace):
        return PublishSupplyHandler(mock_marketplace)

    def test_incomplete_asks_for_more(self, handler, mock_marketplace):
        result = handler.run(make_context("我要发布钢材供应100吨", "PUBLISH_SUPPLY"))

        assert result.to_dict() == {
            "need_more_info": True,
            "missing_fields": ["商品名称", "数量", "品类"],
        }
        assert "缺少" in result.summary
        mock_marketplace.create_listing.assert_not_called()

    def test_creates_listing_and_matches(self, handler, mock_marketplace):
        mock_marketplace.find_matches.return_value = {"matches": [{"listing_id": "L-9", "score": 0.8}]}

        result = handler.run(make_context("发布 菠菜 50斤 3元", "PUBLISH_SUPPLY"))

        params = mock_marketplace.create_listing.call_args[0][0]
        assert params["listing_type"] == "SUPPLY"
        assert params["publisher_id"] == "m-1"
        assert params["title"] == "菠菜"
        mock_marketplace.find_matches.assert_called_once_with("L-1", 3, 0.6)

        fields = result.to_dict()
        assert fields["success"] is True
        assert fields["listing_id"] == "L-1"
        assert fields["match_count"] == 1
        assert fields["matches"] == [{"listing_id": "L-9", "score": 0.8}]
        assert not result.failed

    def test_no_listing_id_is_error(self, handler, mock_marketplace):
        mock_marketplace.create_listing.return_value = {}

        result = handler.run(make_context("发布 菠菜 50斤", "PUBLISH_SUPPLY"))

        assert result.to_dict() == {"error": "创建listing失败"}
        mock_marketplace.find_matches.assert_not_called()

    def test_service_failure_becomes_error_field(self, handler, mock_marketplace):
        mock_marketplace.create_listing.side_effect = MarketplaceServiceError("create_listing", "HTTP 502")

        result = handler.run(make_context("发布 菠菜 50斤", "PUBLISH_SUPPLY"))

        assert result.failed
        assert result.to_dict() == {"error": "处理发布供应请求失败"}


class TestPublishDemandHandler:
    def test_demand_listing_type(self, mock_marketplace):
        PublishDemandHandler(mock_marketplace).run(make_context("需要 白菜 100斤", "PUBLISH_DEMAND"))

        assert mock_marketplace.create_listing.call_args[0][0]["listing_type"] == "DEMAND"

    def test_demand_error_message(self, mock_marketplace):
        mock_marketplace.create_listing.side_effect = RuntimeError("boom")

        result = PublishDemandHandler(mock_marketplace).run(make_context("需要 白菜 100斤"))

        assert result.to_dict() == {"error": "处理发布需求请求失败"}

    def test_actions(self):
        assert PublishDemandHandler().can_handle("PUBLISH_DEMAND")
        assert not PublishDemandHandler().can_handle("PUBLISH_SUPPLY")


# ============================================================================
# Search / Matches / Stats Handlers Tests
# ============================================================================

class TestSearchListingsHandler:
    def test_search_params(self, mock_marketplace):
        mock_marketplace.search_listings.return_value = {"listings": [{"listing_id": "L-2"}], "total_count": 1}

        result = SearchListingsHandler(mock_marketplace).run(make_context("搜索蔬菜供应"))

        mock_marketplace.search_listings.assert_called_once_with(
            {"category": "VEGETABLE", "listing_type": "SUPPLY", "page_size": 5}
        )
        assert result.to_dict() == {"success": True, "listings": [{"listing_id": "L-2"}], "total_count": 1}

    def test_demand_wins_over_supply(self, mock_marketplace):
        SearchListingsHandler(mock_marketplace).run(make_context("查找供应和需求"))

        assert mock_marketplace.search_listings.call_args[0][0]["listing_type"] == "DEMAND"

    def test_failure(self, mock_marketplace):
        mock_marketplace.search_listings.side_effect = MarketplaceServiceError("search_listings", "timeout")

        assert SearchListingsHandler(mock_marketplace).run(make_context("搜索")).to_dict() == {"error": "搜索失败"}


class TestViewMatchesHandler:
    def test_aggregates_matches_with_source_listing(self, mock_marketplace):
        listing_a = {"listing_id": "A", "title": "菠菜"}
        listing_b = {"listing_id": "B", "title": "白菜"}
        mock_marketplace.find_active_listings.return_value = [listing_a, listing_b]
        mock_marketplace.find_matches.side_effect = lambda listing_id, limit, score: {
            "A": {"matches": [{"listing_id": "X", "score": 0.7}]},
            "B": {"matches": [{"listing_id": "Y", "score": 0.6}, {"listing_id": "Z", "score": 0.55}]},
        }[listing_id]

        result = ViewMatchesHandler(mock_marketplace).run(make_context("查看匹配"))

        mock_marketplace.find_active_listings.assert_called_once_with("m-1", 3)
        mock_marketplace.find_matches.assert_any_call("A", 2, 0.5)
        fields = result.to_dict()
        assert fields["match_count"] == 3
        assert fields["matches"][0] == {"listing_id": "X", "score": 0.7, "source_listing": listing_a}
        assert all(m["source_listing"] is listing_b for m in fields["matches"][1:])

    def test_no_listings(self, mock_marketplace):
        result = ViewMatchesHandler(mock_marketplace).run(make_context("推荐"))

        assert result.to_dict() == {"success": True, "matches": [], "match_count": 0}
        mock_marketplace.find_matches.assert_not_called()

    def test_failure(self, mock_marketplace):
        mock_marketplace.find_active_listings.side_effect = MarketplaceServiceError("find_active_listings", "HTTP 500")

        assert ViewMatchesHandler(mock_marketplace).run(make_context("推荐")).to_dict() == {
            "error": "获取匹配信息失败"
        }


class TestMarketplaceStatsHandler:
    def test_passthrough(self, mock_marketplace):
        mock_marketplace.get_marketplace_stats.return_value = {"total_listings": 12, "active_supply": 7}

        result = MarketplaceStatsHandler(mock_marketplace).run(make_context("统计"))

        assert result.to_dict() == {"total_listings": 12, "active_supply": 7}
        assert "total_listings: 12" in result.summary

    def test_failure(self, mock_marketplace):
        mock_marketplace.get_marketplace_stats.side_effect = MarketplaceServiceError("get_marketplace_stats", "x")

        assert MarketplaceStatsHandler(mock_marketplace).run(make_context("统计")).to_dict() == {
            "error": "获取统计信息失败"
        }


class TestGeneralChatHandler:
    def test_chat_mode(self):
        result = GeneralChatHandler().run(make_context("你好"))
        assert result.to_dict() == {"chat_mode": True}
        assert result.summary is None


# ============================================================================
# Media Handlers Tests
# ============================================================================

class TestVoiceMessageHandler:
    @pytest.fixture
    def transcription(self):
        return Mock()

    def test_supply_transcript(self, transcription):
        transcription.transcribe.return_value = Transcription("我要发布钢材供应", "zh", "baidu_speech")

        reply = VoiceMessageHandler(transcription).reply("", {"file_id": "v-1", "duration": 5})

        assert reply.startswith("🎙️ 收到您的语音消息（时长: 5秒）！")
        assert "\"我要发布钢材供应\"" in reply
        assert "中文 🇨🇳" in reply
        assert "检测到供应信息发布需求" in reply

    def test_demand_and_search_steps(self, transcription):
        handler = VoiceMessageHandler(transcription)

        transcription.transcribe.return_value = Transcription("需要大米", "zh", "demo", True)
        assert "检测到采购需求" in handler.reply("", {"file_id": "v-2"})

        transcription.transcribe.return_value = Transcription("搜索 steel", "zh-en", "demo", True)
        reply = handler.reply("", {"file_id": "v-2"})
        assert "检测到产品搜索需求" in reply
        assert "中英混合 🌍" in reply

    def test_no_duration(self, transcription):
        transcription.transcribe.return_value = Transcription("你好", "zh", "demo", True)

        reply = VoiceMessageHandler(transcription).reply("", {"file_id": "v-3"})

        assert reply.startswith("🎙️ 收到您的语音消息！")
        assert "已理解您的语音内容" in reply

    def test_unrecognized(self, transcription):
        transcription.transcribe.return_value = None

        reply = VoiceMessageHandler(transcription).reply("", {})

        assert "正在尝试识别语音内容" in reply
        assert "语音内容识别" not in reply

    def test_actions(self, transcription):
        handler = VoiceMessageHandler(transcription)
        assert handler.can_handle("voice") and handler.can_handle("audio")
        assert handler.intent_label == "voice_processing"


class TestPhotoMessageHandler:
    @pytest.fixture
    def vision(self):
        vision = Mock()
        vision.analyze.return_value = ImageAnalysis("图片显示：钢材产品", "钢材/金属材料", "demo", True)
        return vision

    def test_reply_with_analysis(self, vision):
        reply = PhotoMessageHandler(vision).reply("我的钢材", {"file_id": "p-1", "width": 800, "height": 600})

        assert reply.startswith("📷 收到您的图片（800x600）！")
        assert "📝 您的描述：\"我的钢材\"" in reply
        assert "图片显示：钢材产品" in reply
        assert "🎯 **产品识别**：钢材/金属材料" in reply
        assert "回复\"发布供应 钢材/金属材料\"" in reply

    def test_placeholder_caption_hidden(self, vision):
        reply = PhotoMessageHandler(vision).reply("[Photo Message]", {"file_id": "p-1"})

        assert "您的描述" not in reply
        assert reply.startswith("📷 收到您的图片！")

    def test_unrecognized(self, vision):
        vision.analyze.return_value = None

        reply = PhotoMessageHandler(vision).reply("", {})

        assert "正在尝试识别图片内容" in reply


class TestDocumentMessageHandler:
    def test_file_name_and_caption(self):
        reply = DocumentMessageHandler().reply("报价单", {"fileName": "prices.xlsx"})

        assert reply.startswith("📄 收到您的文档：prices.xlsx！")
        assert "📝 您的说明：\"报价单\"" in reply

    def test_placeholder_caption_hidden(self):
        reply = DocumentMessageHandler().reply("[Document: prices.xlsx]", {"file_name": "prices.xlsx"})

        assert "您的说明" not in reply


def test_unsupported_media_reply():
    assert unsupported_media_reply("sticker") == (
        "收到您的sticker消息，目前系统正在学习处理这种类型的内容。请您用文字描述您的需求。"
    )
