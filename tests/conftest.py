"""
Pytest 配置和共享 fixtures
"""
import os

# 必须在导入 backend 之前设置，Settings 在导入时读取环境变量
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_keypool.db")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")

import pytest
from unittest.mock import Mock, patch
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from backend.models import Base
from backend.db import get_db
from backend.app import app
from core.utils import api_session

TEST_DATABASE_URL = os.environ["DATABASE_URL"]
ADMIN_TOKEN = os.environ["ADMIN_TOKEN"]

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}  # SQLite 需要这个参数
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session():
    """创建测试数据库会话"""
    Base.metadata.create_all(bind=test_engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # 清理表
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": ADMIN_TOKEN}


def fake_response(status_code=200, payload=None):
    resp = Mock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {}
    resp.text = str(payload)
    return resp


@pytest.fixture
def mock_get():
    """替换共享 requests.Session 的 GET，测试中不发出真实请求"""
    with patch.object(api_session, "get") as mocked:
        yield mocked
