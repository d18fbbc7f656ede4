"""Demo fallbacks for speech and image recognition.

When no real recognition backend answers, a fixed sample is picked from the
file id so the same file always yields the same text, across processes.
"""
from typing import Optional

DEMO_TRANSCRIPTS = (
    "我要发布钢材供应100吨，单价4500元，北京地区",
    "需要采购大米150吨，预算30万元，希望华东地区供应商",
    "有机械设备二手挖掘机出售，型号小松PC200，价格面议",
    "采购建材水泥200吨，要求品质好，江苏地区交付",
    "供应新鲜蔬菜，产地山东，每日可供应5吨，价格优惠",
    "寻找钢材供应商，需要螺纹钢300吨，长期合作",
    "出售库存电子产品，手机配件批发，数量大从优",
    "需要运输服务，货运物流，北京到上海专线",
    "供应化工原料，工业级，有资质证书，支持检测",
    "采购办公用品，电脑、桌椅等，预算10万元",
)

DEMO_IMAGE_DESCRIPTIONS = (
    "图片显示：钢材产品，规格螺纹钢HRB400，直径12-25mm，表面质量良好，符合国标要求",
    "图片内容：新鲜蔬菜，包含白菜、萝卜、青菜等，颜色鲜艳，品质优良，适合批发销售",
    "识别结果：机械设备，挖掘机小松PC200型号，外观良好，履带完整，液压系统正常",
    "图片分析：建筑材料，水泥袋装产品，品牌标识清晰，规格42.5R，包装完整无破损",
    "产品图片：电子产品，手机配件包括数据线、充电器、保护壳，包装精美，数量充足",
    "图像内容：化工原料，白色粉末状产品，包装规范，有安全标识和成分说明",
    "识别内容：办公设备，包含电脑主机、显示器、键盘鼠标，配置中等，外观九成新",
    "图片显示：运输车辆，货车厢体完整，载重能力强，适合长途货物运输",
    "产品展示：农产品大米，颗粒饱满，色泽自然，包装标注产地和等级信息",
    "图像分析：工业原料，金属材料表面光滑，规格统一，质量达到工业标准",
)


def stable_hash(value: str) -> int:
    """Signed 32-bit polynomial hash (base 31) over UTF-16 code units.

    Unlike ``hash()``, the result does not depend on PYTHONHASHSEED.
    """
    h = 0
    data = value.encode("utf-16-be")
    for i in range(0, len(data), 2):
        h = (31 * h + ((data[i] << 8) | data[i + 1])) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def demo_index(file_id: str, size: int = 10) -> int:
    return abs(stable_hash(file_id)) % size


def demo_transcript(file_id: Optional[str]) -> Optional[str]:
    if not file_id:
        return None
    return DEMO_TRANSCRIPTS[demo_index(file_id, len(DEMO_TRANSCRIPTS))]


def demo_image_description(file_id: Optional[str]) -> Optional[str]:
    if not file_id:
        return None
    return DEMO_IMAGE_DESCRIPTIONS[demo_index(file_id, len(DEMO_IMAGE_DESCRIPTIONS))]
