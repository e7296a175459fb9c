from .base import BaseBalanceAdapter
from ..results import BalanceInfo
from ..utils import dig, to_amount
from .factory import AdapterFactory

@AdapterFactory.register("volcengine")
class VolcengineAdapter(BaseBalanceAdapter):
    """字节火山（火山引擎）账户余额"""
    provider_name = "volcengine"
    balance_url = "https://open.volcengineapi.com/api/v3/billing/balance"
    currency = "CNY"
    # 火山引擎不使用 Bearer 前缀，直接传原始 Key
    auth_scheme = None

    def normalize(self, payload):
        return BalanceInfo(
            balance=to_amount(dig(payload, "AvailableBalance")),
            total=to_amount(dig(payload, "TotalBalance")),
            currency=self.currency,
            details=payload,
        )
