from sqlalchemy import Column, Integer, String, Float, DateTime, Text
from datetime import datetime
from . import Base


class APIKey(Base):
    __tablename__ = 'api_key_pool'

    id = Column(Integer, primary_key=True)
    provider = Column(String(50), nullable=False, index=True)  # deepseek, openai, volcengine, qwen, siliconflow
    key = Column(Text, nullable=False)  # 实际的API Key，明文存储，不做唯一约束

    # 最近一次查询到的余额
    balance = Column(Float, nullable=True)
    currency = Column(String(3), nullable=True)  # CNY / USD

    description = Column(String(200), nullable=True)  # 备注
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
