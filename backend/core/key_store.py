# backend/core/key_store.py
import math
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import StoreError
from core.reconciler import ReconcilePlan
from core.utils import ADMIN_PAGE_SIZE, mask_key
from ..models.api_key import APIKey

logger = logging.getLogger(__name__)


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size > 0 else 0


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class KeyStore:
    """api_key_pool 表的所有读写，SQLAlchemy 异常统一转成 StoreError"""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, provider: Optional[str] = None, search: Optional[str] = None):
        query = self.db.query(APIKey)
        if provider:
            query = query.filter(APIKey.provider == provider)
        if search and search.strip():
            pattern = f"%{_escape_like(search.strip())}%"
            query = query.filter(APIKey.key.ilike(pattern, escape="\\"))
        return query

    def list_keys(self, provider: Optional[str] = None, search: Optional[str] = None,
                  page: int = 1, page_size: int = ADMIN_PAGE_SIZE) -> Tuple[List[APIKey], int]:
        """返回 (当前页记录, 过滤后总数)；页码从 1 开始，按创建时间倒序"""
        try:
            query = self._filtered(provider, search)
            # 总数单独查询，用于计算总页数
            total = query.count()
            rows = (query.order_by(APIKey.created_at.desc())
                    .offset((page - 1) * page_size)
                    .limit(page_size)
                    .all())
        except SQLAlchemyError as e:
            logger.error(f"查询 Key 列表失败: {e}")
            raise StoreError(str(e)) from e
        return rows, total

    def get(self, key_id: int) -> Optional[APIKey]:
        try:
            return self.db.query(APIKey).filter(APIKey.id == key_id).first()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    def get_many(self, key_ids: Iterable[int]) -> List[APIKey]:
        ids = list(key_ids)
        if not ids:
            return []
        try:
            rows = self.db.query(APIKey).filter(APIKey.id.in_(ids)).all()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        by_id = {row.id: row for row in rows}
        return [by_id[i] for i in ids if i in by_id]

    def all_keys(self) -> List[APIKey]:
        try:
            return self.db.query(APIKey).order_by(APIKey.id).all()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    def find_by_keys(self, keys: Iterable[str]) -> Dict[str, APIKey]:
        """按 key 查已有记录；库中同一 key 有多行时取 id 最小的一行"""
        keys = list(set(keys))
        if not keys:
            return {}
        try:
            rows = (self.db.query(APIKey)
                    .filter(APIKey.key.in_(keys))
                    .order_by(APIKey.id)
                    .all())
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        existing = {}
        for row in rows:
            existing.setdefault(row.key, row)
        return existing

    def create(self, provider: str, key: str, balance: Optional[float] = None,
               currency: Optional[str] = None, description: Optional[str] = None) -> APIKey:
        db_key = APIKey(provider=provider, key=key, balance=balance,
                        currency=currency, description=description)
        try:
            self.db.add(db_key)
            self.db.commit()
            self.db.refresh(db_key)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"添加 Key 失败: {e}")
            raise StoreError(str(e)) from e
        return db_key

    def insert_batch(self, records: List[dict]) -> int:
        """一次性批量插入，失败则整体回滚"""
        if not records:
            return 0
        try:
            self.db.add_all([APIKey(**record) for record in records])
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"批量保存 {len(records)} 个 Key 失败: {e}")
            raise StoreError(str(e)) from e
        return len(records)

    def update(self, record: APIKey, **fields) -> APIKey:
        try:
            for name, value in fields.items():
                setattr(record, name, value)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"更新 Key {record.id} 失败: {e}")
            raise StoreError(str(e)) from e
        return record

    def update_balance(self, record: APIKey, balance: Optional[float], currency: Optional[str]) -> APIKey:
        return self.update(record, balance=balance, currency=currency)

    def delete(self, record: APIKey) -> None:
        try:
            self.db.delete(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"删除 Key {record.id} 失败: {e}")
            raise StoreError(str(e)) from e

    def apply_plan(self, plan: ReconcilePlan) -> Dict[str, int]:
        """
        按合并计划写库：新增一次批量插入，更新逐条独立提交。
        单条更新失败只计数，不回滚其他已提交的更新，也不重试。
        """
        inserted = self.insert_batch([
            {
                "provider": result.provider,
                "key": result.api_key,
                "balance": result.balance,
                "currency": result.currency,
            }
            for result in plan.to_insert
        ])

        updated = 0
        update_failed = 0
        for pending in plan.to_update:
            try:
                self.update_balance(pending.record, pending.result.balance, pending.result.currency)
                updated += 1
            except StoreError:
                logger.warning(f"更新 {mask_key(pending.result.api_key)} 余额失败，已跳过")
                update_failed += 1

        logger.info(f"保存完成: 新增 {inserted}，更新 {updated}，更新失败 {update_failed}，"
                    f"无变化 {len(plan.unchanged)}，跳过 {plan.skipped_count}")
        return {
            "inserted": inserted,
            "updated": updated,
            "update_failed": update_failed,
            "unchanged": len(plan.unchanged),
            "skipped": plan.skipped_count,
        }
