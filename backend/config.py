from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List, Union
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    database_url: str = Field(
        default="sqlite:///./data/keypool.db",
        description="SQLAlchemy 数据库连接 URL"
    )

    # 管理员令牌，通过 X-Admin-Token 请求头校验；为空时管理接口全部拒绝
    admin_token: str = ""

    # CORS - 逗号分隔的字符串或列表
    cors_origins: Union[str, List[str]] = Field(
        default="http://localhost:7860,http://127.0.0.1:7860",
        description="CORS允许的来源"
    )

    # 余额不高于该值的 Key 保存时跳过
    low_balance_threshold: float = 0.1

    # 定时刷新余额间隔（分钟），0 表示不启用
    key_monitor_interval_minutes: int = 0

    log_level: str = "INFO"
    project_name: str = "LLM Key Pool"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    def get_cors_origins_list(self) -> List[str]:
        if isinstance(self.cors_origins, list):
            return self.cors_origins
        return [self.cors_origins]


settings = Settings()
