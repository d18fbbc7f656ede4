"""Deterministic replies used when no remote text provider answers.

Keyword checks run in a fixed order; the first match picks the template.
"""
import re
from typing import Optional

SUPPLY_KEYWORDS = ("供应", "出售", "卖")
DEMAND_KEYWORDS = ("需求", "采购", "买")
GUIDE_KEYWORDS = ("引导", "帮我填写", "一步步")
MATCH_KEYWORDS = ("匹配", "分析")
CONTACT_KEYWORDS = ("联系",)
STATS_KEYWORDS = ("数据", "统计", "报告")
HELP_KEYWORDS = ("帮助", "你好")
PRICE_KEYWORDS = ("价格", "报价")

DETAIL_UNITS = ("吨", "个", "件", "元", "价格", "预算")

PRODUCT_NAMES = ("钢材", "大米", "设备", "机械")

QUANTITY_PRICE_PATTERN = re.compile(r"\d+[吨个件]|\d+元")
DIGIT_PATTERN = re.compile(r"\d")

SUPPLY_FORM = (
    "我来帮您发布供应信息！请提供以下详细信息：\n\n"
    "📦 产品名称：\n"
    "📊 数量：\n"
    "💰 价格：\n"
    "📍 地区：\n"
    "📞 联系方式：\n\n"
    "💡 提示：您可以一次性告诉我，例如：\n"
    "\"我要发布钢材供应，100吨，单价4500元/吨，北京地区，联系电话13800138000\"\n\n"
    "或者我可以引导您一步步填写，请回复 \"引导我\" 开始。"
)

DEMAND_FORM = (
    "我来帮您发布采购需求！请提供以下信息：\n\n"
    "🎯 需要产品：\n"
    "📊 需求数量：\n"
    "💵 预算范围：\n"
    "⏰ 需要时间：\n"
    "📍 地区要求：\n\n"
    "💡 提示：您可以直接说，例如：\n"
    "\"我需要采购钢材150吨，预算680000元，一个月内，华北地区\"\n\n"
    "或者回复 \"帮我填写\" 进行逐步引导。"
)

GUIDE_REPLY = (
    "好的！我来引导您逐步操作。\n\n"
    "首先，请告诉我您想要：\n"
    "1️⃣ 发布供应信息（我有产品要卖）\n"
    "2️⃣ 发布需求信息（我要采购产品）\n"
    "3️⃣ 查看匹配建议（寻找商机）\n\n"
    "请回复数字1、2或3，我会为您详细引导。"
)

MENU_SUPPLY_REPLY = (
    "✅ 好的，我来帮您发布供应信息。\n\n"
    "第一步：请告诉我您要供应什么产品？\n"
    "例如：钢材、大米、机械设备等\n\n"
    "💬 直接输入产品名称即可。"
)

MENU_DEMAND_REPLY = (
    "✅ 好的，我来帮您发布采购需求。\n\n"
    "第一步：请告诉我您要采购什么产品？\n"
    "例如：原材料、办公用品、生产设备等\n\n"
    "💬 直接输入产品名称即可。"
)

MENU_MATCH_REPLY = (
    "🎯 智能匹配分析启动...\n\n"
    "基于您的历史数据和当前市场情况，我为您找到了以下商机：\n\n"
    "🔥 **热门匹配**：\n"
    "• 钢材供应商（匹配度：92%）- 价格优势明显\n"
    "• 建材批发商（匹配度：88%）- 地理位置便利\n"
    "• 设备制造商（匹配度：85%）- 技术领先\n\n"
    "📊 **市场趋势**：\n"
    "• 钢材价格本周上涨3.2%\n"
    "• 建材需求量环比增长15%\n"
    "• 华东地区供需最活跃\n\n"
    "💡 想了解具体某个匹配的详情吗？请回复对应的关键词。"
)

MATCH_REPLY = (
    "🎯 智能匹配分析结果：\n\n"
    "✅ 找到3个高质量匹配：\n"
    "• 钢材供应商（匹配度：92%）\n"
    "• 建材批发商（匹配度：88%）\n"
    "• 本地仓储商（匹配度：85%）\n\n"
    "💡 建议：联系最高匹配度的供应商获取详细报价\n\n"
    "📞 需要我帮您联系这些供应商吗？回复 \"联系\" 我来为您安排。"
)

CONTACT_REPLY = (
    "📞 联系服务已启动！\n\n"
    "我正在为您联系以下优质供应商：\n\n"
    "🏢 **华东钢材集团**\n"
    "📍 位置：上海市\n"
    "💰 参考价格：4,200-4,800元/吨\n"
    "⏰ 预计回复：1小时内\n\n"
    "🏢 **北方建材有限公司**\n"
    "📍 位置：北京市\n"
    "💰 参考价格：4,500-5,000元/吨\n"
    "⏰ 预计回复：2小时内\n\n"
    "📧 我会将您的需求信息发送给他们，一旦有回复我会立即通知您。\n\n"
    "💬 您还需要其他帮助吗？"
)

STATS_REPLY = (
    "📊 您的marketplace数据概览：\n\n"
    "📈 **本月表现**：\n"
    "• 供应发布：12条 ⬆️\n"
    "• 需求发布：8条 ⬆️\n"
    "• 成功匹配：15个 🎯\n"
    "• 交易总额：￥456,800 💰\n"
    "• 平均评分：4.3/5.0 ⭐\n\n"
    "🔥 **热门类别**：\n"
    "1. 钢材 (28%)\n"
    "2. 建材 (22%)\n"
    "3. 机械 (18%)\n\n"
    "📈 **趋势分析**：您的活跃度比上月提升25%！\n\n"
    "需要查看详细报告吗？回复 \"详细报告\" 获取完整分析。"
)

HELP_REPLY = (
    "👋 欢迎使用智能推荐！我是您的专属AI助手。\n\n"
    "🚀 **我能为您做什么**：\n"
    "🔹 发布供应信息（说 \"我要供应...\"）\n"
    "🔹 发布采购需求（说 \"我要采购...\"）\n"
    "🔹 智能匹配分析（说 \"帮我匹配\"）\n"
    "🔹 查看数据统计（说 \"查看数据\"）\n"
    "🔹 联系优质供应商（说 \"联系服务\"）\n\n"
    "💡 **使用技巧**：\n"
    "• 可以直接描述需求：\"我要50吨钢材\"\n"
    "• 可以要求引导：\"引导我发布供应\"\n"
    "• 可以查询信息：\"今日钢材价格\"\n\n"
    "请告诉我您需要什么帮助？我会提供专业的商机匹配服务！"
)

PRICE_REPLY = (
    "💰 **今日市场价格**（实时更新）：\n\n"
    "🔧 **钢材类**：\n"
    "• 螺纹钢：4,200-4,500元/吨 ↗️\n"
    "• 线材：4,180-4,450元/吨 ↗️\n"
    "• 板材：4,350-4,680元/吨 ➡️\n\n"
    "🏗️ **建材类**：\n"
    "• 水泥：320-380元/吨 ↘️\n"
    "• 砂石：85-120元/立方 ➡️\n\n"
    "📈 **价格趋势**：\n"
    "钢材价格本周上涨3.2%，建议适时采购。\n\n"
    "需要特定产品的详细报价吗？请告诉我具体产品名称。"
)


def _contains_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def has_product_details(message: str) -> bool:
    """True when the message carries a number plus a unit, price or budget word."""
    return bool(DIGIT_PATTERN.search(message)) and _contains_any(message, DETAIL_UNITS)


def extract_product_name(message: str) -> str:
    for name in PRODUCT_NAMES:
        if name in message:
            return name
    return "相关产品"


def extract_quantity_price(message: str) -> str:
    tokens = QUANTITY_PRICE_PATTERN.findall(message)
    return ", ".join(tokens) if tokens else "请提供具体数量和价格"


def supply_summary(message: str) -> str:
    return (
        "✅ 我已分析您的供应信息：\n\n"
        "📋 **信息摘要**：\n"
        f"• 产品信息：{extract_product_name(message)}\n"
        f"• 数量/价格：{extract_quantity_price(message)}\n\n"
        "🎯 **智能建议**：\n"
        "• 您的产品在当前市场有很好的竞争力\n"
        "• 建议在平台首页展示以获得更多曝光\n"
        "• 预计7天内可以找到3-5个潜在买家\n\n"
        "📢 **下一步操作**：\n"
        "我可以帮您：\n"
        "1. 正式发布到平台（回复 \"发布\"）\n"
        "2. 寻找匹配的买家（回复 \"匹配\"）\n"
        "3. 修改信息（回复 \"修改\"）\n\n"
        "请选择您想要的操作。"
    )


def demand_summary(message: str) -> str:
    return (
        "✅ 我已分析您的采购需求：\n\n"
        "📋 **需求摘要**：\n"
        f"• 采购产品：{extract_product_name(message)}\n"
        f"• 数量/预算：{extract_quantity_price(message)}\n\n"
        "🎯 **匹配分析**：\n"
        "• 找到8个符合条件的供应商\n"
        "• 预计价格区间比您的预算低5-10%\n"
        "• 3家供应商可以在您要求的时间内交货\n\n"
        "🚀 **推荐行动**：\n"
        "1. 立即联系推荐供应商（回复 \"联系\"）\n"
        "2. 查看详细匹配报告（回复 \"报告\"）\n"
        "3. 发布需求到平台（回复 \"发布需求\"）\n\n"
        "我建议您先查看匹配报告，了解市场情况后再做决定。"
    )


def generic_reply(message: str) -> str:
    return (
        f"🤔 我理解您说的是：\"{message}\"\n\n"
        "让我为您提供最相关的帮助：\n\n"
        "如果您想要：\n"
        "📦 **发布供应** - 回复 \"供应 + 产品名\"\n"
        "🛒 **发布需求** - 回复 \"需求 + 产品名\"\n"
        "🎯 **智能匹配** - 回复 \"匹配分析\"\n"
        "📊 **查看数据** - 回复 \"数据统计\"\n"
        "💰 **价格查询** - 回复 \"产品名 + 价格\"\n\n"
        "💬 或者您可以直接说出您的具体需求，我会智能理解并为您提供帮助！"
    )


def local_reply(user_message: Optional[str], intent: Optional[str] = None) -> str:
    """Pick a templated reply for ``user_message``. Always returns non-empty text."""
    message = user_message or ""
    lowered = message.strip().lower()

    if _contains_any(lowered, SUPPLY_KEYWORDS):
        return supply_summary(message) if has_product_details(message) else SUPPLY_FORM
    if _contains_any(lowered, DEMAND_KEYWORDS):
        return demand_summary(message) if has_product_details(message) else DEMAND_FORM
    if _contains_any(lowered, GUIDE_KEYWORDS):
        return GUIDE_REPLY
    if lowered in ("1", "1️⃣"):
        return MENU_SUPPLY_REPLY
    if lowered in ("2", "2️⃣"):
        return MENU_DEMAND_REPLY
    if lowered in ("3", "3️⃣"):
        return MENU_MATCH_REPLY
    if _contains_any(lowered, MATCH_KEYWORDS):
        return MATCH_REPLY
    if _contains_any(lowered, CONTACT_KEYWORDS):
        return CONTACT_REPLY
    if _contains_any(lowered, STATS_KEYWORDS):
        return STATS_REPLY
    if lowered == "/start" or _contains_any(lowered, HELP_KEYWORDS):
        return HELP_REPLY
    if _contains_any(lowered, PRICE_KEYWORDS):
        return PRICE_REPLY
    return generic_reply(message)
