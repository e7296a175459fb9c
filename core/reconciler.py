"""
保存查询结果时的合并逻辑。

只做规划，不碰数据库：给定本次查询成功的结果和库中已有记录（按 key 索引），
划分出需要新增、需要更新余额、无变化以及因余额过低被跳过的结果。
实际写库见 backend/core/key_store.py。
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from .results import QueryResult

LOW_BALANCE_THRESHOLD = 0.1


@dataclass
class PendingUpdate:
    record: Any
    result: QueryResult


@dataclass
class ReconcilePlan:
    to_insert: List[QueryResult] = field(default_factory=list)
    to_update: List[PendingUpdate] = field(default_factory=list)
    unchanged: List[QueryResult] = field(default_factory=list)
    skipped: List[QueryResult] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def has_writes(self) -> bool:
        return bool(self.to_insert or self.to_update)


def _field(record, name):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def is_low_balance(result: QueryResult, threshold: float = LOW_BALANCE_THRESHOLD) -> bool:
    return result.balance is None or result.balance <= threshold


def has_changed(record, result: QueryResult) -> bool:
    # 精确比较，不设容差
    return _field(record, "balance") != result.balance or _field(record, "currency") != result.currency


def reconcile(results: Iterable[QueryResult], existing_by_key: Dict[str, Any],
              threshold: float = LOW_BALANCE_THRESHOLD) -> ReconcilePlan:
    plan = ReconcilePlan()

    candidates: Dict[str, QueryResult] = {}
    for result in results:
        if result.status != "success":
            continue
        if is_low_balance(result, threshold):
            plan.skipped.append(result)
            continue
        # 同一批次内重复的 Key 以最后一次结果为准
        candidates[result.api_key] = result

    for key, result in candidates.items():
        record = existing_by_key.get(key)
        if record is None:
            plan.to_insert.append(result)
        elif has_changed(record, result):
            plan.to_update.append(PendingUpdate(record=record, result=result))
        else:
            plan.unchanged.append(result)
    return plan
