"""
API路由模块
"""

from fastapi import APIRouter
from .vote_routes import router as vote_router
from .option_routes import router as option_router
from .backup_routes import router as backup_router
from .system_routes import router as system_router

# 创建主路由器
api_router = APIRouter()

# 注册各个功能模块的路由
api_router.include_router(vote_router, prefix="/votes", tags=["投票记录"])
api_router.include_router(option_router, tags=["选项与统计"])
api_router.include_router(backup_router, tags=["备份恢复"])
api_router.include_router(system_router, tags=["系统"])
