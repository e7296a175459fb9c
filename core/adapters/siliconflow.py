from .base import BaseBalanceAdapter
from ..results import BalanceInfo
from ..utils import dig, to_amount
from .factory import AdapterFactory

@AdapterFactory.register("siliconflow")
class SiliconFlowAdapter(BaseBalanceAdapter):
    """硅基流动，余额在用户信息接口里"""
    provider_name = "siliconflow"
    balance_url = "https://api.siliconflow.cn/v1/user/info"
    currency = "CNY"

    def normalize(self, payload):
        balance = to_amount(dig(payload, "data", "balance"))
        total = to_amount(dig(payload, "data", "totalBalance"))
        return BalanceInfo(
            balance=balance,
            total=total,
            used=total - balance,
            currency=self.currency,
            details=payload,
        )
