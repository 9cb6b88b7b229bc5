"""
投票记录数据模型
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean
from sqlalchemy.sql import func
from survey.core.database import Base
from survey.core.utils import parse_selected_options

class Vote(Base):
    """投票记录表"""
    __tablename__ = "votes"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False, unique=True, index=True)  # 用户名，每个用户只能投票一次
    selected_options = Column(Text, nullable=False)                          # JSON格式的选项列表
    submit_time = Column(DateTime(timezone=True), nullable=False, server_default=func.now())  # 提交时间，编辑时不更新
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)              # 未被任何查询使用
    create_time = Column(DateTime(timezone=True), server_default=func.now())
    update_time = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def options(self):
        """解析后的选项列表，无法解析时返回空列表"""
        try:
            return parse_selected_options(self.selected_options)
        except ValueError:
            return []
