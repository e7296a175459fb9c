import re
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List

from .checker import check_balance
from .errors import BalanceCheckError, UnsupportedProvider, ValidationError
from .results import BalanceInfo, QueryResult
from .utils import is_supported_provider, mask_key

logger = logging.getLogger(__name__)

# checker(provider, api_key) -> BalanceInfo
Checker = Callable[[str, str], BalanceInfo]

_KEY_SEPARATORS = re.compile(r"[\n,]+")


def parse_keys(raw_text: str) -> List[str]:
    """按换行或逗号切分，去掉首尾空白和空项；保持输入顺序，不去重"""
    if not raw_text:
        return []
    return [key.strip() for key in _KEY_SEPARATORS.split(raw_text) if key.strip()]


def pending_results(keys: List[str], provider: str) -> List[QueryResult]:
    return [QueryResult.loading(key, provider) for key in keys]


def query_one(api_key: str, provider: str, checker: Checker = check_balance) -> QueryResult:
    """查询单个 Key，任何失败都收敛为该 Key 自己的 error 结果"""
    try:
        info = checker(provider, api_key)
    except BalanceCheckError as e:
        return QueryResult.failed(api_key, provider, e.message)
    except Exception as e:
        logger.exception(f"查询 {mask_key(api_key)} 时出现未预期的错误")
        return QueryResult.failed(api_key, provider, str(e) or "查询失败")
    return QueryResult.succeeded(api_key, provider, info)


async def query_keys(keys: List[str], provider: str, checker: Checker = check_balance) -> List[QueryResult]:
    """所有 Key 同时查询并一起等待；gather 保证结果顺序与输入一致"""
    if not keys:
        return []
    loop = asyncio.get_running_loop()
    # 每批独立线程池，一个 Key 一个线程，批量再大也不分批排队
    executor = ThreadPoolExecutor(max_workers=len(keys), thread_name_prefix="balance-check")
    try:
        results = await asyncio.gather(*[
            loop.run_in_executor(executor, query_one, key, provider, checker)
            for key in keys
        ])
    finally:
        executor.shutdown(wait=False)
    success = sum(1 for r in results if r.status == "success")
    logger.info(f"{provider} 批量查询完成: {len(results)} 个 Key，成功 {success} 个")
    return list(results)


async def query_many(raw_text: str, provider: str, checker: Checker = check_balance) -> List[QueryResult]:
    keys = parse_keys(raw_text)
    if not keys:
        raise ValidationError("请输入至少一个 API Key")
    if not is_supported_provider(provider):
        raise UnsupportedProvider(provider)
    return await query_keys(keys, provider, checker)
