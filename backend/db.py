# backend/db.py
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
import os

# 导入 models 包（会执行 __init__.py，注册所有模型）
from . import models
from .config import settings

SQLALCHEMY_DATABASE_URL = settings.database_url

connect_args = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    url = make_url(SQLALCHEMY_DATABASE_URL)
    if url.drivername.startswith("sqlite") and url.database and url.database != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)
    # 使用 models.Base 创建所有表
    models.Base.metadata.create_all(bind=engine)


# 依赖
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
