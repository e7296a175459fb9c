from .adapters.factory import AdapterFactory
from .errors import UnsupportedProvider, ValidationError
from .results import BalanceInfo
from .utils import is_supported_provider


def check_balance(provider: str, api_key: str) -> BalanceInfo:
    """统一查询入口：校验参数和平台后交给对应适配器，不做任何重试"""
    if not provider or not api_key or not str(api_key).strip():
        raise ValidationError("缺少必要参数")
    if not is_supported_provider(provider):
        raise UnsupportedProvider(provider)
    adapter = AdapterFactory.get_adapter(provider)
    return adapter.check(api_key)
