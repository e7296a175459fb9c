import os
import logging
from typing import Any, Dict, List, Optional

import requests

from core.errors import NetworkError, ProviderError
from core.results import BalanceInfo, QueryResult

logger = logging.getLogger(__name__)

BACKEND_URL = os.getenv("KEYPOOL_BACKEND_URL", "http://localhost:8000")
TIMEOUT = float(os.getenv("KEYPOOL_BACKEND_TIMEOUT", "60"))


def error_message(resp) -> str:
    """从后端响应里取出错误信息，兼容 {error} 和 FastAPI 的 {detail}"""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(data, dict):
        message = data.get("error") or data.get("detail")
        if isinstance(message, list):
            # 请求校验失败时 detail 是错误列表
            return "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item)
                             for item in message)
        if message:
            return str(message)
    return f"HTTP {resp.status_code}"


def admin_headers(token: Optional[str]) -> Dict[str, str]:
    return {"X-Admin-Token": token or ""}


def check_via_backend(provider: str, api_key: str) -> BalanceInfo:
    """通过后端 /check-balance 代理查询，供批量查询调度使用"""
    try:
        resp = requests.post(f"{BACKEND_URL}/check-balance",
                             json={"provider": provider, "apiKey": api_key}, timeout=TIMEOUT)
    except requests.RequestException as e:
        raise NetworkError(str(e) or "网络错误") from e
    if resp.status_code != 200:
        raise ProviderError(provider, resp.status_code, message=error_message(resp))
    return BalanceInfo(**resp.json())


def save_results(results: List[QueryResult], abort_on_skip: bool = False) -> Dict[str, Any]:
    payload = {
        "results": [r.dict() for r in results],
        "abort_on_skip": abort_on_skip,
    }
    resp = requests.post(f"{BACKEND_URL}/api/keys/save-results", json=payload, timeout=TIMEOUT)
    if resp.status_code != 200:
        raise ProviderError("backend", resp.status_code, message=error_message(resp))
    return resp.json()


def list_keys(provider: str = "", search: str = "", page: int = 1, page_size: int = 20) -> Dict[str, Any]:
    params = {"page": page, "page_size": page_size}
    if provider and provider != "all":
        params["provider"] = provider
    if search and search.strip():
        params["search"] = search.strip()
    resp = requests.get(f"{BACKEND_URL}/api/keys/", params=params, timeout=TIMEOUT)
    if resp.status_code != 200:
        raise ProviderError("backend", resp.status_code, message=error_message(resp))
    return resp.json()
