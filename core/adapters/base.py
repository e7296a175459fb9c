from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import logging

import requests

from ..errors import NetworkError, ProviderError
from ..results import BalanceInfo
from ..utils import api_session, get_provider_label, mask_key, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class BaseBalanceAdapter(ABC):
    provider_name = ""
    balance_url = ""
    currency = "CNY"
    # 认证头前缀，为 None 时直接使用原始 Key
    auth_scheme: Optional[str] = "Bearer"

    @property
    def label(self) -> str:
        return get_provider_label(self.provider_name)

    def build_headers(self, api_key: str) -> Dict[str, str]:
        authorization = f"{self.auth_scheme} {api_key}" if self.auth_scheme else api_key
        return {
            "Authorization": authorization,
            "Content-Type": "application/json"
        }

    def fetch(self, url: str, api_key: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """发起一次 GET 请求，非 2xx 抛 ProviderError，传输层错误抛 NetworkError"""
        try:
            resp = api_session.get(url, headers=self.build_headers(api_key), params=params,
                                   timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.warning(f"{self.label} 请求失败 ({mask_key(api_key)}): {e}")
            raise NetworkError(str(e)) from e
        if not 200 <= resp.status_code < 300:
            logger.warning(f"{self.label} 返回 HTTP {resp.status_code} ({mask_key(api_key)})")
            raise ProviderError(self.label, resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise ProviderError(self.label, resp.status_code,
                                message=f"{self.label} API 返回了无法解析的响应") from e

    def check(self, api_key: str) -> BalanceInfo:
        """查询余额，默认一次请求后交给 normalize 归一化，子类可覆盖"""
        payload = self.fetch(self.balance_url, api_key)
        return self.normalize(payload)

    @abstractmethod
    def normalize(self, payload: Any) -> BalanceInfo:
        """
        把平台原始响应映射为统一结构
        :param payload: 余额接口返回的 JSON
        :return: BalanceInfo，缺失字段按 0 处理，details 保留原始响应
        """
        pass
