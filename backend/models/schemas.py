from pydantic import BaseModel, Field, validator
from typing import List, Optional, Any
from datetime import datetime

from core.results import QueryResult
from core.utils import is_supported_provider


# ---------- 余额查询 ----------
class BalanceCheckRequest(BaseModel):
    # 缺失字段由接口自己返回 400 {error}，这里不设为必填
    provider: Optional[str] = None
    apiKey: Optional[str] = None


class BatchCheckRequest(BaseModel):
    provider: Optional[str] = None
    keys: str = Field("", description="多个 Key，换行或逗号分隔")


class BalanceOut(BaseModel):
    balance: float
    total: Optional[float] = None
    used: Optional[float] = None
    currency: Optional[str] = None
    details: Any = None


# ---------- Key 池 ----------
class APIKeyBase(BaseModel):
    provider: str
    key: str
    balance: Optional[float] = None
    currency: Optional[str] = None
    description: Optional[str] = None


class APIKeyCreate(APIKeyBase):

    @validator('provider')
    def provider_supported(cls, v):
        if not is_supported_provider(v):
            raise ValueError(f'unsupported provider: {v}')
        return v

    @validator('key')
    def key_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError('key cannot be empty')
        return v.strip()


class APIKeyUpdate(BaseModel):
    description: Optional[str] = None
    balance: Optional[float] = None
    currency: Optional[str] = None


class APIKeyOut(APIKeyBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class APIKeyPage(BaseModel):
    items: List[APIKeyOut]
    total: int
    page: int
    page_size: int
    page_count: int


# ---------- 保存查询结果 ----------
class SaveResultsRequest(BaseModel):
    results: List[QueryResult] = Field(default_factory=list)
    # 有低余额 Key 会被跳过时放弃整次保存
    abort_on_skip: bool = False


class SaveReport(BaseModel):
    inserted: int = 0
    updated: int = 0
    update_failed: int = 0
    unchanged: int = 0
    skipped: int = 0
    aborted: bool = False


# ---------- 刷新余额 ----------
class RefreshRequest(BaseModel):
    ids: List[int] = Field(default_factory=list)


class RefreshItem(BaseModel):
    id: int
    success: bool
    balance: Optional[float] = None
    currency: Optional[str] = None
    error: Optional[str] = None


class RefreshReport(BaseModel):
    success: int = 0
    failed: int = 0
    results: List[RefreshItem] = Field(default_factory=list)
