"""
定时刷新余额测试
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from backend.core import key_monitor
from backend.models.api_key import APIKey
from conftest import TestingSessionLocal, fake_response


@pytest.mark.asyncio
async def test_check_keys_once_refreshes_every_key(db_session, mock_get):
    db_session.add(APIKey(provider="qwen", key="sk-a", balance=1.0, currency="CNY"))
    db_session.add(APIKey(provider="qwen", key="sk-b", balance=1.0, currency="CNY"))
    db_session.commit()
    mock_get.return_value = fake_response(200, {"data": {"available_amount": 6, "total_amount": 10}})

    with patch.object(key_monitor, "SessionLocal", TestingSessionLocal):
        report = await key_monitor.check_keys_once()

    assert report["success"] == 2
    assert report["failed"] == 0
    db_session.expire_all()
    assert [r.balance for r in db_session.query(APIKey).order_by(APIKey.id)] == [6, 6]


@pytest.mark.asyncio
async def test_check_keys_once_with_empty_pool(db_session, mock_get):
    with patch.object(key_monitor, "SessionLocal", TestingSessionLocal):
        report = await key_monitor.check_keys_once()

    assert report == {"success": 0, "failed": 0, "results": []}
    mock_get.assert_not_called()


@pytest.mark.asyncio
async def test_monitor_keeps_running_after_unexpected_error():
    # 第一轮抛出未预期的异常，第二轮用 CancelledError 结束循环
    rounds = [RuntimeError("boom"), asyncio.CancelledError()]

    with patch.object(key_monitor, "check_keys_once", side_effect=rounds) as check, \
            patch.object(key_monitor.asyncio, "sleep", new=AsyncMock()) as sleep:
        with pytest.raises(asyncio.CancelledError):
            await key_monitor.start_key_monitor(interval_minutes=1)

    assert check.call_count == 2
    sleep.assert_awaited_once_with(60)
