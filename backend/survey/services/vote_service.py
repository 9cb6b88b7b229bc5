"""
投票变更服务

提交、更新、删除、恢复投票记录，并在同一事务中维护 vote_options.vote_count。
每次修改选项都遵循"先减旧选项，再加新选项"的顺序，任何一步失败都会整体回滚，
选项计数不会出现部分更新。
"""

from contextlib import contextmanager
from typing import Any, Iterable, List, Optional, Sequence
from sqlalchemy import case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from survey.core.exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    StoreUnavailableError,
    VoteError,
)
from survey.core.logging import get_logger
from survey.core.utils import normalize_options, parse_selected_options, serialize_options, utcnow
from survey.models.vote import Vote
from survey.models.vote_option import VoteOption
from survey.schemas.vote_schemas import BackupVote
from survey.services.query_service import QueryService

logger = get_logger(__name__)


class VoteService:
    """投票变更服务"""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _transaction(self, action: str):
        """执行一个事务，失败时回滚并转换为业务异常"""
        try:
            yield
            self.db.commit()
        except VoteError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ {action}违反唯一约束: {e.orig}")
            raise ConflictError() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ {action}失败: {e}")
            raise StoreUnavailableError() from e

    # ---- 参数校验 ----

    @staticmethod
    def _validate_username(username: Optional[str]) -> str:
        if not isinstance(username, str) or not username.strip():
            raise InvalidInputError()
        return username.strip()

    @staticmethod
    def _validate_options(selected_options: Any) -> List[str]:
        if isinstance(selected_options, str):
            try:
                options = parse_selected_options(selected_options)
            except ValueError as e:
                raise InvalidInputError("选项数据格式错误，请检查是否包含特殊字符") from e
        elif isinstance(selected_options, (list, tuple)):
            options = normalize_options(selected_options)
        else:
            raise InvalidInputError()
        if not options:
            raise InvalidInputError()
        return options

    # ---- 选项计数 ----

    def _increment_options(self, options: Iterable[str]) -> None:
        """为每个启用的选项计数加1，未知选项忽略"""
        for option in set(options):
            self.db.query(VoteOption).filter(
                VoteOption.option_text == option,
                VoteOption.is_active == True,
            ).update(
                {VoteOption.vote_count: VoteOption.vote_count + 1},
                synchronize_session=False,
            )

    def _decrement_options(self, options: Iterable[str]) -> None:
        """为每个选项计数减1，最小为0"""
        for option in set(options):
            self.db.query(VoteOption).filter(
                VoteOption.option_text == option,
            ).update(
                {VoteOption.vote_count: case(
                    (VoteOption.vote_count > 0, VoteOption.vote_count - 1),
                    else_=0,
                )},
                synchronize_session=False,
            )

    def _lock_vote(self, *criteria) -> Optional[Vote]:
        # 行锁保证同一记录的并发更新/删除串行执行（SQLite下忽略）
        return self.db.query(Vote).filter(*criteria).with_for_update().first()

    # ---- 变更操作 ----

    def submit(
        self,
        username: str,
        selected_options: Sequence[str],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Vote:
        """提交投票，每个用户名只能投票一次"""
        username = self._validate_username(username)
        options = self._validate_options(selected_options)

        with self._transaction("提交投票"):
            if QueryService(self.db).has_voted(username):
                raise ConflictError()

            now = utcnow()
            vote = Vote(
                username=username,
                selected_options=serialize_options(options),
                submit_time=now,
                ip_address=ip_address,
                user_agent=user_agent or "",
                is_deleted=False,
                create_time=now,
                update_time=now,
            )
            self.db.add(vote)
            # 并发提交时唯一约束在这里触发
            self.db.flush()
            self._increment_options(options)

        logger.info(f"✅ 用户 {username} 投票成功: {options}")
        return vote

    def update(self, vote_id: int, username: str, selected_options: Any) -> Vote:
        """更新投票记录的用户名和选项，提交时间和来源信息保持不变"""
        username = self._validate_username(username)
        options = self._validate_options(selected_options)
        try:
            serialized = serialize_options(options)
        except ValueError as e:
            raise InvalidInputError("选项数据格式错误，请检查是否包含特殊字符") from e

        with self._transaction("更新投票记录"):
            vote = self._lock_vote(Vote.id == vote_id)
            if vote is None:
                raise NotFoundError()

            if username != vote.username:
                taken = self.db.query(Vote.id).filter(
                    Vote.username == username,
                    Vote.id != vote_id,
                ).first()
                if taken:
                    raise ConflictError("用户名已存在")

            old_options = vote.options
            vote.username = username
            vote.selected_options = serialized
            vote.update_time = utcnow()
            self.db.flush()

            # 先减去旧选项，再加上新选项
            self._decrement_options(old_options)
            self._increment_options(options)

        logger.info(f"✏️ 投票记录 {vote_id} 已更新: {old_options} -> {options}")
        return vote

    def delete(self, vote_id: int) -> None:
        """删除投票记录"""
        with self._transaction("删除投票记录"):
            vote = self._lock_vote(Vote.id == vote_id)
            if vote is None:
                raise NotFoundError()
            self._remove(vote)
        logger.info(f"🗑️ 投票记录 {vote_id} 已删除")

    def delete_by_username(self, username: str) -> None:
        """用户清除自己的投票数据"""
        username = self._validate_username(username)
        with self._transaction("清除用户数据"):
            vote = self._lock_vote(Vote.username == username)
            if vote is None:
                raise NotFoundError()
            self._remove(vote)
        logger.info(f"🗑️ 用户 {username} 的投票数据已清除")

    def _remove(self, vote: Vote) -> None:
        old_options = vote.options
        self.db.delete(vote)
        self.db.flush()
        self._decrement_options(old_options)

    def restore(self, records: Sequence[BackupVote]) -> int:
        """
        用备份数据整体替换投票记录

        原样写入记录（保留id和时间），然后将所有选项计数清零，按启用的选项重新统计。
        不在应用层校验用户名唯一，任何一条记录写入失败都会保留原有数据。
        id重复属于无效的备份数据，用户名重复则违反唯一约束。
        """
        with self._transaction("数据恢复"):
            self.db.query(Vote).delete(synchronize_session="fetch")

            for record in records:
                submit_time = record.submit_time or utcnow()
                self.db.add(Vote(
                    id=record.id,
                    username=record.username,
                    selected_options=serialize_options(record.selected_options),
                    submit_time=submit_time,
                    ip_address=record.ip_address,
                    user_agent=record.user_agent,
                    is_deleted=record.is_deleted,
                    create_time=record.create_time or submit_time,
                    update_time=record.update_time or submit_time,
                ))
            try:
                self.db.flush()
            except IntegrityError as e:
                logger.warning(f"⚠️ 备份数据写入失败: {e.orig}")
                if "username" in str(e.orig):
                    raise ConflictError("备份数据中存在重复的用户名", str(e.orig)) from e
                raise InvalidInputError("无效的备份数据", str(e.orig)) from e

            self.db.query(VoteOption).update({VoteOption.vote_count: 0}, synchronize_session=False)
            for record in records:
                self._increment_options(record.selected_options)

        logger.info(f"📥 成功恢复 {len(records)} 条投票记录")
        return len(records)

    def clear_all(self) -> int:
        """清除所有投票记录并重置选项计数"""
        with self._transaction("清除数据"):
            deleted = self.db.query(Vote).delete(synchronize_session="fetch")
            self.db.query(VoteOption).update({VoteOption.vote_count: 0}, synchronize_session=False)
        logger.info(f"🗑️ 已清除 {deleted} 条投票记录")
        return deleted
