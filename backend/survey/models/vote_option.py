"""
投票选项数据模型
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func
from survey.core.database import Base

class VoteOption(Base):
    """投票选项表（vote_count 为冗余的选项计数）"""
    __tablename__ = "vote_options"

    id = Column(Integer, primary_key=True, index=True)
    option_text = Column(String(200), nullable=False, unique=True)  # 选项显示文本
    option_order = Column(Integer, nullable=False, default=0)        # 显示顺序
    is_active = Column(Boolean, nullable=False, default=True)        # 是否可被新投票选择
    vote_count = Column(Integer, nullable=False, default=0)          # 选择该选项的投票记录数
    create_time = Column(DateTime(timezone=True), server_default=func.now())
    update_time = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
