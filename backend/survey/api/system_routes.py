"""
连接测试与调试API路由
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from survey.core.config import settings
from survey.core.database import get_db
from survey.core.exceptions import StoreUnavailableError
from survey.core.utils import now_timestamp
from survey.services.vote_service import VoteService
from survey.services.query_service import QueryService
from survey.schemas.vote_schemas import OptionDetail, OptionDetailListResponse

router = APIRouter()

@router.get("/test")
def test_connection(db: Session = Depends(get_db)):
    """测试数据库连接"""
    if not QueryService(db).check_connection():
        raise StoreUnavailableError()
    return {
        "success": True,
        "message": "数据库连接正常",
        "database": settings.DATABASE_NAME,
        "timestamp": now_timestamp(),
    }

@router.delete("/debug/clear")
def clear_all_votes(db: Session = Depends(get_db)):
    """调试接口：清除所有投票数据并重置选项计数"""
    VoteService(db).clear_all()
    return JSONResponse({
        "success": True,
        "message": "所有投票数据已清除",
        "timestamp": now_timestamp(),
    })

@router.get("/debug/options", response_model=OptionDetailListResponse)
def get_option_status(db: Session = Depends(get_db)):
    """调试接口：查看vote_options表状态"""
    options = QueryService(db).get_all_options()
    return OptionDetailListResponse(
        options=[
            OptionDetail(
                id=o.id,
                text=o.option_text,
                order=o.option_order,
                is_active=bool(o.is_active),
                vote_count=o.vote_count,
            )
            for o in options
        ],
        count=len(options),
        timestamp=now_timestamp(),
    )
