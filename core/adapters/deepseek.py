from .base import BaseBalanceAdapter
from ..results import BalanceInfo
from ..utils import dig, to_amount
from .factory import AdapterFactory

@AdapterFactory.register("deepseek")
class DeepSeekAdapter(BaseBalanceAdapter):
    provider_name = "deepseek"  # 也可用于自动发现
    balance_url = "https://api.deepseek.com/user/balance"
    currency = "CNY"

    def normalize(self, payload):
        # DeepSeek 只返回总余额，没有已用额度
        total_balance = to_amount(dig(payload, "balance_infos", 0, "total_balance"))
        return BalanceInfo(
            balance=total_balance,
            total=total_balance,
            currency=self.currency,
            details=payload,
        )
