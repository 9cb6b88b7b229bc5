"""
数据库管理服务

供 manage_database.py 使用：状态报告、清空数据、文件备份与恢复。
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from sqlalchemy import DateTime, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from survey.core.config import settings
from survey.core.database import REQUIRED_TABLES
from survey.core.exceptions import InvalidInputError, StoreUnavailableError
from survey.core.logging import get_logger
from survey.core.utils import backup_filename, format_timestamp_with_timezone, parse_timestamp, utcnow
from survey.models.system_config import SystemConfig
from survey.models.vote import Vote
from survey.models.vote_option import VoteOption
from survey.schemas.vote_schemas import BackupVote
from survey.services.vote_service import VoteService

logger = get_logger(__name__)

# 备份文件中的表名与模型对应关系
TABLE_MODELS = {
    "votes": Vote,
    "vote_options": VoteOption,
    "system_config": SystemConfig,
}


def _row_to_dict(row) -> Dict[str, Any]:
    data = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key)
        if hasattr(value, "isoformat"):
            value = format_timestamp_with_timezone(value)
        data[column.key] = value
    return data


def _dict_to_row(model, data: Dict[str, Any]):
    values = {}
    for column in model.__table__.columns:
        if column.key not in data:
            continue
        value = data[column.key]
        if isinstance(column.type, DateTime):
            value = parse_timestamp(value)
        values[column.key] = value
    return model(**values)


class DatabaseAdminService:
    """数据库管理服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_status(self) -> List[Dict[str, Any]]:
        """每个表的记录数和字段列表"""
        inspector = inspect(self.db.get_bind())
        existing = set(inspector.get_table_names())
        report = []
        for table_name in REQUIRED_TABLES:
            if table_name not in existing:
                report.append({"table": table_name, "exists": False, "count": 0, "columns": []})
                continue
            model = TABLE_MODELS[table_name]
            report.append({
                "table": table_name,
                "exists": True,
                "count": self.db.query(model).count(),
                "columns": [column["name"] for column in inspector.get_columns(table_name)],
            })
        return report

    def clear_all_tables(self) -> Dict[str, int]:
        """清空所有表数据（包括选项和系统配置）"""
        cleared = {}
        try:
            for table_name in REQUIRED_TABLES:
                cleared[table_name] = self.db.query(TABLE_MODELS[table_name]).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailableError(message=str(e)) from e
        for table_name, count in cleared.items():
            logger.info(f"✅ 已清空表 {table_name}: {count} 条记录")
        return cleared

    def backup_to_file(self, output_path: Optional[str] = None) -> Path:
        """将三个表的全部数据写入JSON备份文件"""
        backup = {
            "timestamp": format_timestamp_with_timezone(utcnow()),
            "version": settings.BACKUP_VERSION,
            "database": settings.DATABASE_NAME,
            "tables": {},
        }
        try:
            for table_name in REQUIRED_TABLES:
                rows = self.db.query(TABLE_MODELS[table_name]).all()
                backup["tables"][table_name] = [_row_to_dict(row) for row in rows]
                logger.info(f"✅ 已备份表 {table_name}: {len(rows)} 条记录")
        except SQLAlchemyError as e:
            raise StoreUnavailableError(message=str(e)) from e

        path = Path(output_path or backup_filename())
        path.write_text(json.dumps(backup, ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info(f"💾 数据库备份完成: {path}")
        return path

    def restore_from_file(self, backup_path: str) -> int:
        """
        从备份文件恢复

        支持管理脚本导出的 {tables: {...}} 格式和接口导出的 {votes: [...]} 格式。
        选项表和系统配置按原样替换，投票记录通过 VoteService.restore 写入并重新统计。
        """
        try:
            backup = json.loads(Path(backup_path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise InvalidInputError("无效的备份文件", str(e)) from e
        if not isinstance(backup, dict):
            raise InvalidInputError("无效的备份数据格式")

        logger.info(f"📄 备份文件信息: 时间 {backup.get('timestamp')}, "
                    f"版本 {backup.get('version')}, 数据库 {backup.get('database')}")

        tables = backup.get("tables")
        votes = tables.get("votes") if isinstance(tables, dict) else backup.get("votes")
        if not isinstance(votes, list):
            raise InvalidInputError("无效的备份数据格式：缺少votes数据")

        try:
            records = [BackupVote.model_validate(vote) for vote in votes]
        except ValueError as e:
            raise InvalidInputError("无效的备份数据格式", str(e)) from e

        if isinstance(tables, dict):
            try:
                self._replace_table(VoteOption, tables.get("vote_options"))
                self._replace_table(SystemConfig, tables.get("system_config"))
            except SQLAlchemyError as e:
                self.db.rollback()
                raise StoreUnavailableError(message=str(e)) from e

        return VoteService(self.db).restore(records)

    def _replace_table(self, model, rows: Optional[List[Dict[str, Any]]]) -> None:
        # 与投票记录在同一事务中提交
        if rows is None:
            return
        self.db.query(model).delete(synchronize_session=False)
        for row in rows:
            self.db.add(_dict_to_row(model, row))
        self.db.flush()
        logger.info(f"✅ 已恢复表 {model.__tablename__}: {len(rows)} 条记录")
