"""
应用配置模块
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """应用设置"""

    # 基础设置
    APP_NAME: str = "投票系统"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # 服务器设置
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGINS: List[str] = ["*"]

    # 数据库设置
    DATABASE_URL: str = "sqlite:///./survey.db"
    DATABASE_NAME: str = "toupiao"       # 备份文件中记录的数据库名称
    DB_POOL_SIZE: int = 10               # 连接池大小（SQLite不使用）
    DB_MAX_OVERFLOW: int = 0
    DB_ECHO: bool = False                # 设置为True可以看到SQL查询日志

    # 投票设置
    DEFAULT_OPTIONS: List[str] = ["选项一", "选项二", "选项三", "选项四", "选项五"]
    BACKUP_VERSION: str = "1.0"

    # 日志设置
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

# 全局设置实例
settings = Settings()
