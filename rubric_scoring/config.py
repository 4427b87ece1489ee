"""应用配置管理。

使用 Pydantic Settings 统一读取环境变量，便于在本地/生产之间切换。
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """核心配置项。

    - ``database_url``：默认使用本地 SQLite，便于快速启动。
    - ``log_level``：根 logger 的日志级别。
    - ``default_max_total``：既没有评分标准也没有调用方给出满分时使用的总分上限。
    """

    database_url: str = Field(
        default="sqlite:///./rubric_scoring.db", description="SQLAlchemy 数据库 URL"
    )
    log_level: str = Field(default="INFO", description="日志级别")
    default_max_total: int = Field(
        default=100, ge=0, description="缺省满分，与原系统的 100 分制保持一致"
    )

    model_config = {
        "env_prefix": "RUBRIC_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """缓存后的全局配置实例。"""

    return Settings()
