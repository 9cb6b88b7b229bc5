"""
投票记录API路由
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from typing import Optional
from survey.core.database import get_db
from survey.core.utils import now_timestamp
from survey.services.vote_service import VoteService
from survey.services.query_service import QueryService
from survey.schemas.vote_schemas import (
    MessageResponse,
    VoteCheckResponse,
    VoteCreate,
    VoteCreateResponse,
    VoteListResponse,
    VoteRecordResponse,
    VoteSummary,
    VoteUpdate,
)

router = APIRouter()

@router.post("", response_model=VoteCreateResponse)
def submit_vote(
    vote_data: VoteCreate,
    request: Request,
    db: Session = Depends(get_db)
):
    """提交投票"""
    vote = VoteService(db).submit(
        vote_data.username,
        vote_data.selected_options,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent", ""),
    )
    return VoteCreateResponse(id=vote.id, message="投票提交成功", timestamp=now_timestamp())

@router.get("/check/{username}", response_model=VoteCheckResponse, response_model_exclude_none=True)
def check_user_voted(
    username: str,
    db: Session = Depends(get_db)
):
    """检查用户是否已投票"""
    vote = QueryService(db).get_by_username(username)
    if vote is None:
        return VoteCheckResponse(has_voted=False)
    return VoteCheckResponse(
        has_voted=True,
        vote=VoteSummary(
            id=vote.id,
            username=vote.username,
            selected_options=vote.options,
            submit_time=vote.submit_time,
        ),
    )

@router.get("", response_model=VoteListResponse)
def list_votes(
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """获取所有投票记录（管理员），可按用户名或选项搜索"""
    votes = QueryService(db).list_all(search)
    return VoteListResponse(
        votes=[VoteRecordResponse.from_vote(vote) for vote in votes],
        total=len(votes),
        timestamp=now_timestamp(),
    )

@router.put("/{vote_id}", response_model=MessageResponse)
def update_vote(
    vote_id: int,
    vote_data: VoteUpdate,
    db: Session = Depends(get_db)
):
    """更新投票记录（管理员）"""
    VoteService(db).update(vote_id, vote_data.username, vote_data.selected_options)
    return MessageResponse(message="投票记录更新成功")

@router.delete("/by-username/{username}", response_model=MessageResponse)
def clear_user_vote(
    username: str,
    db: Session = Depends(get_db)
):
    """清除当前用户自己的投票数据"""
    VoteService(db).delete_by_username(username)
    return MessageResponse(message="用户数据已清除")

@router.delete("/{vote_id}", response_model=MessageResponse)
def delete_vote(
    vote_id: int,
    db: Session = Depends(get_db)
):
    """删除投票记录（管理员）"""
    VoteService(db).delete(vote_id)
    return MessageResponse(message="投票记录删除成功")
