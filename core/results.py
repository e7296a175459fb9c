from pydantic import BaseModel
from typing import Any, Literal, Optional


class BalanceInfo(BaseModel):
    """各平台余额接口归一化后的结构"""
    balance: float = 0.0
    total: Optional[float] = None
    used: Optional[float] = None
    currency: Optional[str] = None
    details: Any = None


class QueryResult(BaseModel):
    api_key: str
    provider: str
    status: Literal["loading", "success", "error"]
    balance: Optional[float] = None
    total: Optional[float] = None
    used: Optional[float] = None
    currency: Optional[str] = None
    details: Any = None
    error: Optional[str] = None

    @classmethod
    def loading(cls, api_key: str, provider: str) -> "QueryResult":
        return cls(api_key=api_key, provider=provider, status="loading")

    @classmethod
    def failed(cls, api_key: str, provider: str, error: str) -> "QueryResult":
        return cls(api_key=api_key, provider=provider, status="error", error=error)

    @classmethod
    def succeeded(cls, api_key: str, provider: str, info: BalanceInfo) -> "QueryResult":
        return cls(api_key=api_key, provider=provider, status="success", **info.dict())
