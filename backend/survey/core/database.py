"""
数据库配置
"""
from typing import Iterable, List, Optional
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from survey.core.config import settings
from survey.core.logging import get_logger

logger = get_logger(__name__)

# 必需的数据表
REQUIRED_TABLES = ["votes", "vote_options", "system_config"]

SCHEMA_VERSION = "1.0"


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """根据数据库地址创建引擎，SQLite之外的数据库使用有界连接池"""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )
    return create_engine(
        database_url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        echo=echo,
    )


engine = create_db_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _import_models():
    # 导入所有模型，确保表已注册到 Base.metadata
    from survey.models.vote import Vote
    from survey.models.vote_option import VoteOption
    from survey.models.system_config import SystemConfig


def init_db(bind: Optional[Engine] = None, default_options: Optional[Iterable[str]] = None) -> List[str]:
    """
    初始化数据库

    创建缺失的表，并在选项表为空时写入默认投票选项。返回本次新建的表名。
    """
    bind = bind or engine
    _import_models()

    missing = check_missing_tables(bind)
    if missing:
        logger.info(f"🔧 检测到缺失的表 {missing}，开始创建...")
    Base.metadata.create_all(bind=bind)

    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=bind)
    db = session_factory()
    try:
        seed_database(db, settings.DEFAULT_OPTIONS if default_options is None else default_options)
    finally:
        db.close()

    logger.info("✅ 数据库初始化完成")
    return missing


def seed_database(db: Session, default_options: Iterable[str]) -> int:
    """写入默认选项和系统配置，已有数据时跳过"""
    from survey.models.vote_option import VoteOption
    from survey.models.system_config import SystemConfig

    created = 0
    if db.query(VoteOption).count() == 0:
        for order, option_text in enumerate(default_options, start=1):
            db.add(VoteOption(option_text=option_text, option_order=order, is_active=True, vote_count=0))
            created += 1
        logger.info(f"📦 已写入 {created} 个默认投票选项")
    else:
        logger.info("✅ 投票选项已存在，跳过初始化")

    if db.query(SystemConfig).filter(SystemConfig.config_key == "schema_version").first() is None:
        db.add(SystemConfig(config_key="schema_version", config_value=SCHEMA_VERSION, description="数据库结构版本"))

    db.commit()
    return created


def check_missing_tables(bind: Optional[Engine] = None) -> List[str]:
    """检查缺失的数据表"""
    existing = set(inspect(bind or engine).get_table_names())
    return [name for name in REQUIRED_TABLES if name not in existing]


def drop_db(bind: Optional[Engine] = None) -> None:
    """删除所有表"""
    _import_models()
    Base.metadata.drop_all(bind=bind or engine)
    logger.info("🗑️ 所有表已删除")
