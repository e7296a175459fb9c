import os
import math
import requests
import urllib3
from enum import Enum
import logging

logger = logging.getLogger(__name__)

# ====================== 全局配置 ======================
VERIFY_SSL = os.getenv("KEYPOOL_VERIFY_SSL", "true").lower() not in ("0", "false", "no")
if not VERIFY_SSL:
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

REQUEST_TIMEOUT = float(os.getenv("KEYPOOL_REQUEST_TIMEOUT", "30"))

api_session = requests.Session()
api_session.verify = VERIFY_SSL

# 列表分页大小：管理面板 20，共享列表 10
ADMIN_PAGE_SIZE = 20
SHARED_PAGE_SIZE = 10


# ====================== 平台枚举 ======================
class Provider(str, Enum):
    DEEPSEEK = "deepseek"
    OPENAI = "openai"
    VOLCENGINE = "volcengine"
    QWEN = "qwen"
    SILICONFLOW = "siliconflow"


PROVIDER_LABELS = {
    Provider.DEEPSEEK.value: "DeepSeek",
    Provider.OPENAI.value: "OpenAI",
    Provider.VOLCENGINE.value: "字节火山",
    Provider.QWEN.value: "阿里千问",
    Provider.SILICONFLOW.value: "硅基流动",
}

PROVIDER_VALUES = [p.value for p in Provider]


def is_supported_provider(provider) -> bool:
    return provider in PROVIDER_VALUES


def get_provider_label(provider: str) -> str:
    return PROVIDER_LABELS.get(provider, provider)


# ====================== 工具函数 ======================
def mask_key(key: str) -> str:
    """只显示前 12 位和后 8 位，用于界面展示和日志"""
    if not key:
        return ""
    if len(key) <= 20:
        return key[:4] + "..." if len(key) > 4 else key
    return f"{key[:12]}...{key[-8:]}"


def to_amount(value) -> float:
    """把接口返回的金额转为 float，缺失或无法解析时为 0（各平台常以字符串返回金额）"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):  # NaN / inf
        return 0.0
    return amount


def dig(data, *path):
    """按路径取嵌套字段，任一层缺失返回 None"""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
            current = current[step]
        elif isinstance(current, dict):
            current = current.get(step)
        else:
            return None
    return current
