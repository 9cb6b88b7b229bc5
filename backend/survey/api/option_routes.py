"""
投票选项与统计API路由
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from survey.core.database import get_db
from survey.core.utils import now_timestamp
from survey.services.query_service import QueryService
from survey.schemas.vote_schemas import OptionInfo, OptionListResponse, StatisticsResponse

router = APIRouter()

@router.get("/options", response_model=OptionListResponse)
def get_options(db: Session = Depends(get_db)):
    """获取启用的投票选项"""
    options = QueryService(db).get_active_options()
    return OptionListResponse(
        options=[OptionInfo(id=o.id, text=o.option_text, order=o.option_order) for o in options],
        timestamp=now_timestamp(),
    )

@router.get("/statistics", response_model=StatisticsResponse)
def get_statistics(db: Session = Depends(get_db)):
    """获取投票统计"""
    stats = QueryService(db).get_statistics()
    return StatisticsResponse(**stats, timestamp=now_timestamp())
