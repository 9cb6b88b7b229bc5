"""
查询与统计服务
"""

from contextlib import contextmanager
from typing import Dict, List, Optional
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from survey.core.config import settings
from survey.core.exceptions import StoreUnavailableError
from survey.core.logging import get_logger
from survey.core.utils import format_timestamp_with_timezone, utcnow
from survey.models.vote import Vote
from survey.models.vote_option import VoteOption
from survey.schemas.vote_schemas import BackupData, BackupVote

logger = get_logger(__name__)


class QueryService:
    """只读查询：投票状态、记录列表、选项和统计"""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _reading(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ {action}失败: {e}")
            raise StoreUnavailableError() from e

    def check_connection(self) -> bool:
        """测试数据库连接"""
        try:
            self.db.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"❌ 数据库连接失败: {e}")
            return False

    def get_by_username(self, username: str) -> Optional[Vote]:
        with self._reading("查询投票记录"):
            return self.db.query(Vote).filter(Vote.username == username.strip()).first()

    def has_voted(self, username: str) -> bool:
        """用户名是否已有投票记录"""
        with self._reading("检查投票状态"):
            return self.db.query(Vote.id).filter(Vote.username == username.strip()).first() is not None

    def list_all(self, search: Optional[str] = None) -> List[Vote]:
        """
        获取所有投票记录，按提交时间倒序

        search 不为空时按用户名和选项文本进行不区分大小写的子串匹配。
        """
        with self._reading("获取投票记录"):
            votes = self.db.query(Vote).order_by(Vote.submit_time.desc(), Vote.id.desc()).all()

        keyword = (search or "").strip().lower()
        if not keyword:
            return votes
        return [
            vote for vote in votes
            if keyword in vote.username.lower()
            or any(keyword in option.lower() for option in vote.options)
        ]

    def get_active_options(self) -> List[VoteOption]:
        """获取启用的投票选项，按显示顺序排列"""
        with self._reading("获取投票选项"):
            return self.db.query(VoteOption).filter(
                VoteOption.is_active == True
            ).order_by(VoteOption.option_order.asc(), VoteOption.id.asc()).all()

    def get_all_options(self) -> List[VoteOption]:
        with self._reading("获取选项状态"):
            return self.db.query(VoteOption).order_by(
                VoteOption.option_order.asc(), VoteOption.id.asc()
            ).all()

    def get_statistics(self) -> Dict:
        """
        获取投票统计

        选项计数直接读取 vote_options.vote_count；总投票数是所有选项计数之和
        （选了3个选项的用户贡献3票），投票人数是投票记录数。
        """
        with self._reading("获取统计"):
            voter_count = self.db.query(Vote).count()
            rows = self.db.query(VoteOption.option_text, VoteOption.vote_count).order_by(
                VoteOption.vote_count.desc(), VoteOption.option_order.asc()
            ).all()

        option_counts = {option_text: vote_count for option_text, vote_count in rows}
        return {
            "total_votes": sum(option_counts.values()),
            "voter_count": voter_count,
            "option_counts": option_counts,
        }

    def build_backup(self) -> BackupData:
        """导出所有投票记录"""
        votes = self.list_all()
        return BackupData(
            timestamp=format_timestamp_with_timezone(utcnow()),
            version=settings.BACKUP_VERSION,
            database=settings.DATABASE_NAME,
            votes=[BackupVote.from_vote(vote) for vote in votes],
        )
