import calendar
from datetime import date, datetime, timezone
from typing import Optional, Tuple

from .base import BaseBalanceAdapter
from ..results import BalanceInfo
from ..utils import dig, to_amount
from .factory import AdapterFactory


def current_month_range(today: Optional[date] = None) -> Tuple[str, str]:
    """当前 UTC 自然月的首日和末日，格式 YYYY-MM-DD"""
    today = today or datetime.now(timezone.utc).date()
    last_day = calendar.monthrange(today.year, today.month)[1]
    start = today.replace(day=1)
    end = today.replace(day=last_day)
    return start.isoformat(), end.isoformat()


@AdapterFactory.register("openai")
class OpenAIAdapter(BaseBalanceAdapter):
    """
    OpenAI 余额需要两次请求：先取订阅额度，再取本月用量。
    billing 接口已被 OpenAI 标记为废弃，仅旧账户可用。
    """
    provider_name = "openai"
    balance_url = "https://api.openai.com/v1/dashboard/billing/subscription"
    usage_url = "https://api.openai.com/v1/dashboard/billing/usage"
    currency = "USD"

    def check(self, api_key, today: Optional[date] = None):
        subscription = self.fetch(self.balance_url, api_key)
        start_date, end_date = current_month_range(today)
        usage = self.fetch(self.usage_url, api_key,
                           params={"start_date": start_date, "end_date": end_date})
        return self.normalize({"subscription": subscription, "usage": usage})

    def normalize(self, payload):
        total = to_amount(dig(payload, "subscription", "hard_limit_usd"))
        # total_usage 单位为美分
        used = to_amount(dig(payload, "usage", "total_usage")) / 100
        return BalanceInfo(
            balance=total - used,
            total=total,
            used=used,
            currency=self.currency,
            details=payload,
        )
