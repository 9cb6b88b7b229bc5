"""
投票相关的数据模式
"""

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_serializer, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional, Union
from datetime import datetime

from survey.core.utils import format_timestamp_with_timezone, parse_selected_options, parse_timestamp


class CamelModel(BaseModel):
    """以camelCase字段名收发的模式基类"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class VoteCreate(CamelModel):
    """提交投票的请求模式"""
    username: str = Field(..., description="用户名")
    selected_options: List[str] = Field(..., description="选择的选项列表")


class VoteUpdate(CamelModel):
    """更新投票记录的请求模式（选项可以是列表、JSON字符串或逗号分隔的字符串）"""
    username: str = Field(..., description="用户名")
    selected_options: Union[List[str], str] = Field(..., description="选择的选项")


class VoteCreateResponse(CamelModel):
    """提交投票的响应"""
    success: bool = True
    id: int
    message: str
    timestamp: str


class MessageResponse(CamelModel):
    """通用操作结果"""
    success: bool = True
    message: str


class VoteSummary(CamelModel):
    """用户已投票时返回的投票摘要"""
    id: int
    username: str
    selected_options: List[str]
    submit_time: Optional[datetime] = None

    @field_serializer('submit_time')
    def serialize_dt(self, dt: Optional[datetime]) -> str:
        return format_timestamp_with_timezone(dt)


class VoteCheckResponse(CamelModel):
    """检查用户是否已投票的响应"""
    has_voted: bool
    vote: Optional[VoteSummary] = None


class VoteRecordResponse(CamelModel):
    """投票记录（管理员列表）"""
    id: int
    username: str
    selected_options: List[str]
    submit_time: Optional[datetime] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    is_deleted: bool = False
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None

    @field_serializer('submit_time', 'create_time', 'update_time')
    def serialize_dt(self, dt: Optional[datetime]) -> str:
        return format_timestamp_with_timezone(dt)

    @classmethod
    def from_vote(cls, vote) -> "VoteRecordResponse":
        return cls(
            id=vote.id,
            username=vote.username,
            selected_options=vote.options,
            submit_time=vote.submit_time,
            ip_address=vote.ip_address,
            user_agent=vote.user_agent,
            is_deleted=bool(vote.is_deleted),
            create_time=vote.create_time,
            update_time=vote.update_time,
        )


class VoteListResponse(CamelModel):
    """投票记录列表"""
    success: bool = True
    votes: List[VoteRecordResponse]
    total: int
    timestamp: str


class OptionInfo(CamelModel):
    """投票选项"""
    id: int
    text: str
    order: int


class OptionListResponse(CamelModel):
    success: bool = True
    options: List[OptionInfo]
    timestamp: str


class OptionDetail(OptionInfo):
    """包含计数和启用状态的选项（调试接口）"""
    is_active: bool
    vote_count: int


class OptionDetailListResponse(CamelModel):
    success: bool = True
    options: List[OptionDetail]
    count: int
    timestamp: str


class StatisticsResponse(CamelModel):
    """投票统计：总投票数为所有选项计数之和，投票人数为投票记录数"""
    success: bool = True
    total_votes: int
    voter_count: int
    option_counts: Dict[str, int]
    timestamp: str


class BackupVote(BaseModel):
    """备份文件中的一条投票记录（字段名为snake_case，也接受camelCase）"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    username: str = Field(..., min_length=1)
    selected_options: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("selected_options", "selectedOptions"),
    )
    submit_time: Optional[datetime] = Field(None, validation_alias=AliasChoices("submit_time", "submitTime"))
    ip_address: Optional[str] = Field(None, validation_alias=AliasChoices("ip_address", "ipAddress"))
    user_agent: Optional[str] = Field(None, validation_alias=AliasChoices("user_agent", "userAgent"))
    is_deleted: bool = Field(False, validation_alias=AliasChoices("is_deleted", "isDeleted"))
    create_time: Optional[datetime] = Field(None, validation_alias=AliasChoices("create_time", "createTime"))
    update_time: Optional[datetime] = Field(None, validation_alias=AliasChoices("update_time", "updateTime"))

    @field_validator('selected_options', mode='before')
    @classmethod
    def parse_options(cls, value: Any) -> List[str]:
        return parse_selected_options(value)

    @field_validator('submit_time', 'create_time', 'update_time', mode='before')
    @classmethod
    def parse_times(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)

    @field_validator('is_deleted', mode='before')
    @classmethod
    def parse_deleted(cls, value: Any) -> bool:
        # MySQL导出的布尔值为 0/1
        return bool(value) if value is not None else False

    @field_serializer('submit_time', 'create_time', 'update_time')
    def serialize_dt(self, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        return format_timestamp_with_timezone(dt)

    @classmethod
    def from_vote(cls, vote) -> "BackupVote":
        return cls(
            id=vote.id,
            username=vote.username,
            selected_options=vote.options,
            submit_time=vote.submit_time,
            ip_address=vote.ip_address,
            user_agent=vote.user_agent,
            is_deleted=bool(vote.is_deleted),
            create_time=vote.create_time,
            update_time=vote.update_time,
        )


class RestoreRequest(BaseModel):
    """数据恢复请求"""
    votes: List[BackupVote]


class BackupData(BaseModel):
    """备份数据"""
    timestamp: str
    version: str
    database: str
    votes: List[BackupVote]
