# backend/core/security.py
import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from ..config import settings

logger = logging.getLogger(__name__)


def verify_admin_token(token: Optional[str]) -> bool:
    expected = settings.admin_token
    if not expected or not token:
        return False
    return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


async def require_admin(x_admin_token: Optional[str] = Header(None)):
    """管理接口依赖：X-Admin-Token 必须与配置的 ADMIN_TOKEN 一致"""
    if not settings.admin_token:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="管理功能未启用")
    if not verify_admin_token(x_admin_token):
        logger.warning("管理接口令牌校验失败")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="无权限访问")
    return True
