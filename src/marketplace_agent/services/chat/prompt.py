"""Prompt and conversation context assembly for the marketplace assistant."""
from typing import Iterable, Optional

PROMPT_HEADER = "你是一个专业的农贸市场AI助手，帮助商家进行智能供需撮合。\n\n"

INTENT_INSTRUCTIONS = {
    "PUBLISH_SUPPLY": "用户想要发布供应信息。请帮助他们完善商品信息，包括：商品名称、数量、价格、品质等级、配送方式等。\n",
    "PUBLISH_DEMAND": "用户想要发布需求信息。请帮助他们明确需求详情，包括：商品名称、数量、期望价格、品质要求、交付时间等。\n",
    "SEARCH_LISTINGS": "用户想要搜索商品信息。请帮助他们精确搜索条件，并解读搜索结果。\n",
    "VIEW_MATCHES": "用户想要查看匹配推荐。请解读匹配结果，说明推荐理由，帮助用户决策。\n",
    "GET_STATS": "用户想要了解市场统计。请解读数据，提供市场洞察和建议。\n",
}

GENERIC_INSTRUCTION = "请自然地回应用户的问题，如有需要可引导用户使用marketplace功能。\n"

PROMPT_FOOTER = "\n\n请用简洁、友好的语言回复，重点突出关键信息。"


def intent_instruction(intent: Optional[str]) -> str:
    return INTENT_INSTRUCTIONS.get(str(intent or ""), GENERIC_INSTRUCTION)


def build_marketplace_prompt(user_message: str, conversation_context: str, intent: Optional[str]) -> str:
    """Assemble the user-turn prompt: header, intent clause, context, raw message."""
    return (
        PROMPT_HEADER
        + intent_instruction(intent)
        + "\n上下文信息:\n"
        + (conversation_context or "")
        + "\n\n用户消息: "
        + (user_message or "")
        + PROMPT_FOOTER
    )


def build_conversation_context(
    intent: str,
    merchant_id: str,
    recent_messages: Iterable = (),
    summary: Optional[str] = None,
) -> str:
    """Describe the session for the model.

    ``recent_messages`` are DialogMessage-like objects (``content`` and
    ``ai_response``), most recent first.
    """
    lines = [f"会话模式: {intent}", f"商家ID: {merchant_id}"]
    if summary:
        lines.append(f"业务结果: {summary}")

    recent = list(recent_messages)
    if recent:
        lines.append("最近对话:")
        for message in recent:
            lines.append(f"用户: {message.content}")
            lines.append(f"助手: {message.ai_response}")
    return "\n".join(lines) + "\n"
