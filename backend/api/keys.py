# backend/api/keys.py
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional

from core.errors import ValidationError
from core.reconciler import reconcile
from core.utils import ADMIN_PAGE_SIZE, is_supported_provider
from ..config import settings
from ..db import get_db
from ..core.key_store import KeyStore, page_count
from ..core.key_tester import refresh_record, refresh_records
from ..core.security import require_admin
from ..models.schemas import (
    APIKeyCreate, APIKeyUpdate, APIKeyOut, APIKeyPage,
    SaveResultsRequest, SaveReport, RefreshRequest, RefreshReport,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/keys", tags=["keys"])


def _get_or_404(store: KeyStore, key_id: int):
    key = store.get(key_id)
    if not key:
        raise HTTPException(status_code=404, detail="Key not found")
    return key


# 列出Key（共享列表和管理面板共用）
@router.get("/", response_model=APIKeyPage)
def list_keys(
        provider: Optional[str] = None,
        search: Optional[str] = None,
        page: int = Query(1, ge=1),
        page_size: int = Query(ADMIN_PAGE_SIZE, ge=1, le=100),
        db: Session = Depends(get_db)
):
    if provider and provider != "all" and not is_supported_provider(provider):
        raise ValidationError(f"不支持的平台: {provider}")
    if provider == "all":
        provider = None
    rows, total = KeyStore(db).list_keys(provider=provider, search=search, page=page, page_size=page_size)
    return {
        "items": rows,
        "total": total,
        "page": page,
        "page_size": page_size,
        "page_count": page_count(total, page_size),
    }


# 手动添加Key
@router.post("/", response_model=APIKeyOut)
def create_key(key: APIKeyCreate, db: Session = Depends(get_db)):
    return KeyStore(db).create(
        provider=key.provider,
        key=key.key,
        balance=key.balance,
        currency=key.currency,
        description=key.description or None,
    )


# 保存查询成功的结果（新增 / 更新余额 / 跳过）
@router.post("/save-results", response_model=SaveReport)
def save_results(request: SaveResultsRequest, db: Session = Depends(get_db)):
    successful = [r for r in request.results if r.status == "success"]
    if not successful:
        raise ValidationError("没有可用的 API Key 可以保存")

    store = KeyStore(db)
    existing = store.find_by_keys(r.api_key for r in successful)
    plan = reconcile(successful, existing, threshold=settings.low_balance_threshold)

    if request.abort_on_skip and plan.skipped_count:
        logger.info(f"{plan.skipped_count} 个 Key 余额不足，已取消保存")
        return SaveReport(skipped=plan.skipped_count, unchanged=len(plan.unchanged), aborted=True)
    return SaveReport(**store.apply_plan(plan))


# 批量刷新余额
@router.post("/refresh", response_model=RefreshReport, dependencies=[Depends(require_admin)])
async def refresh_keys(request: RefreshRequest, db: Session = Depends(get_db)):
    store = KeyStore(db)
    records = store.get_many(request.ids)
    if not records:
        return RefreshReport()
    return await refresh_records(store, records)


# 获取单个Key
@router.get("/{key_id}", response_model=APIKeyOut, dependencies=[Depends(require_admin)])
def get_key(key_id: int, db: Session = Depends(get_db)):
    return _get_or_404(KeyStore(db), key_id)


# 更新Key
@router.put("/{key_id}", response_model=APIKeyOut, dependencies=[Depends(require_admin)])
def update_key(key_id: int, update: APIKeyUpdate, db: Session = Depends(get_db)):
    store = KeyStore(db)
    key = _get_or_404(store, key_id)
    return store.update(key, **update.dict(exclude_unset=True))


# 删除Key
@router.delete("/{key_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_key(key_id: int, db: Session = Depends(get_db)):
    store = KeyStore(db)
    key = _get_or_404(store, key_id)
    store.delete(key)
    return


# 刷新单个Key余额
@router.post("/{key_id}/refresh", response_model=APIKeyOut, dependencies=[Depends(require_admin)])
def refresh_key(key_id: int, db: Session = Depends(get_db)):
    """重新查询余额；失败时返回 {error}，库中余额保持不变"""
    store = KeyStore(db)
    key = _get_or_404(store, key_id)
    return refresh_record(store, key)
