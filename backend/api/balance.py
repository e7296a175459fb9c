# backend/api/balance.py
import asyncio
from typing import List

from fastapi import APIRouter

from core.checker import check_balance
from core.dispatcher import query_many
from core.errors import ValidationError
from core.results import QueryResult
from ..models.schemas import BalanceCheckRequest, BatchCheckRequest, BalanceOut

router = APIRouter(tags=["balance"])


@router.post("/check-balance", response_model=BalanceOut, response_model_exclude_none=True)
async def check_balance_endpoint(request: BalanceCheckRequest):
    """代理查询单个 Key 的余额，失败时由全局异常处理返回 {error}"""
    info = await asyncio.to_thread(check_balance, request.provider, request.apiKey)
    return info


@router.post("/check-balance/batch", response_model=List[QueryResult])
async def check_balance_batch(request: BatchCheckRequest):
    """一次提交多个 Key，并发查询，结果顺序与输入一致"""
    if not request.provider:
        raise ValidationError("缺少必要参数")
    return await query_many(request.keys, request.provider)
