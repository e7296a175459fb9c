from .base import BaseBalanceAdapter
from ..results import BalanceInfo
from ..utils import dig, to_amount
from .factory import AdapterFactory

@AdapterFactory.register("qwen")
class QwenAdapter(BaseBalanceAdapter):
    """阿里云百炼 DashScope 余额"""
    provider_name = "qwen"
    balance_url = "https://dashscope.aliyuncs.com/api/v1/balance"
    currency = "CNY"

    def normalize(self, payload):
        return BalanceInfo(
            balance=to_amount(dig(payload, "data", "available_amount")),
            total=to_amount(dig(payload, "data", "total_amount")),
            used=to_amount(dig(payload, "data", "used_amount")),
            currency=self.currency,
            details=payload,
        )
