# backend/core/key_monitor.py
import asyncio
import logging

from core.errors import StoreError
from ..db import SessionLocal
from .key_store import KeyStore
from .key_tester import refresh_records

logger = logging.getLogger(__name__)


async def check_keys_once():
    """刷新库中所有 Key 的余额一次，返回批量刷新报告"""
    db = SessionLocal()
    try:
        store = KeyStore(db)
        keys = store.all_keys()
        if not keys:
            return {"success": 0, "failed": 0, "results": []}
        return await refresh_records(store, keys)
    finally:
        db.close()


async def start_key_monitor(interval_minutes=60):
    """启动定时监控循环，单轮失败只记录日志，等待下一轮"""
    while True:
        try:
            report = await check_keys_once()
            logger.info(f"定时刷新余额: 成功 {report['success']}，失败 {report['failed']}")
        except StoreError as e:
            logger.error(f"Key monitoring error: {e}")
        except Exception:
            logger.exception("Key monitoring error")
        await asyncio.sleep(interval_minutes * 60)
