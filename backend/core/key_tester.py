# backend/core/key_tester.py
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List

from core.checker import check_balance
from core.dispatcher import Checker
from core.errors import BalanceCheckError
from core.utils import mask_key
from ..models.api_key import APIKey
from .key_store import KeyStore

logger = logging.getLogger(__name__)


def refresh_record(store: KeyStore, record: APIKey, checker: Checker = check_balance) -> APIKey:
    """重新查询单个 Key 的余额并写回；查询或写库失败直接抛出，库中原值保持不变"""
    info = checker(record.provider, record.key)
    return store.update_balance(record, info.balance, info.currency)


def _write_outcomes(store: KeyStore, records: List[APIKey], outcomes) -> List[Dict[str, Any]]:
    """逐条写回余额，每条独立提交；写库失败记为该条失败"""
    results = []
    for record, (info, error) in zip(records, outcomes):
        if info is not None:
            try:
                store.update_balance(record, info.balance, info.currency)
            except BalanceCheckError as e:
                error = e.message
        if error is None:
            results.append({"id": record.id, "success": True,
                            "balance": record.balance, "currency": record.currency})
        else:
            logger.warning(f"刷新 Key {record.id} ({mask_key(record.key)}) 失败: {error}")
            results.append({"id": record.id, "success": False, "error": error})
    return results


async def refresh_records(store: KeyStore, records: List[APIKey],
                          checker: Checker = check_balance) -> Dict[str, Any]:
    """
    批量刷新余额：所有查询同时执行，之后逐条写库。
    每条记录独立成功或失败，失败只计数不重试。
    """
    if not records:
        return {"success": 0, "failed": 0, "results": []}
    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(max_workers=len(records), thread_name_prefix="balance-refresh")

    async def _check(record):
        try:
            # 参数在事件循环线程中取出，线程内不访问 ORM 对象
            return await loop.run_in_executor(executor, checker, record.provider, record.key), None
        except BalanceCheckError as e:
            return None, e.message
        except Exception as e:
            logger.exception(f"刷新 {mask_key(record.key)} 时出现未预期的错误")
            return None, str(e) or "查询失败"

    try:
        outcomes = await asyncio.gather(*[_check(record) for record in records])
    finally:
        executor.shutdown(wait=False)

    # 写库是阻塞调用，放到线程里执行，不占用事件循环
    results = await asyncio.to_thread(_write_outcomes, store, records, outcomes)

    success = sum(1 for r in results if r["success"])
    logger.info(f"批量刷新完成: 成功 {success} 条，失败 {len(results) - success} 条")
    return {"success": success, "failed": len(results) - success, "results": results}
