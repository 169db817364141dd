"""
应用配置
从环境变量读取配置
"""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "Booking Engine"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./booking_engine.db"
    # SQLite 写锁等待时间（秒）
    SQLITE_BUSY_TIMEOUT: float = 10.0

    # 房间默认币种（仅作为标签透传，不做换算）
    DEFAULT_CURRENCY: str = "ZAR"

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# 全局设置实例
settings = Settings()
