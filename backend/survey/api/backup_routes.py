"""
数据备份与恢复API路由
"""

import json
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session
from survey.core.database import get_db
from survey.core.utils import backup_filename
from survey.services.vote_service import VoteService
from survey.services.query_service import QueryService
from survey.schemas.vote_schemas import MessageResponse, RestoreRequest

router = APIRouter()

@router.get("/backup")
def download_backup(db: Session = Depends(get_db)):
    """下载JSON格式的数据备份"""
    backup = QueryService(db).build_backup()
    content = json.dumps(backup.model_dump(), ensure_ascii=False, indent=2)
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f"attachment; filename={backup_filename()}"},
    )

@router.post("/restore", response_model=MessageResponse)
def restore_backup(
    restore_data: RestoreRequest,
    db: Session = Depends(get_db)
):
    """用备份数据替换所有投票记录"""
    count = VoteService(db).restore(restore_data.votes)
    return MessageResponse(message=f"成功恢复 {count} 条投票记录")
