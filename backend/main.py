#!/usr/bin/env python3
"""
投票系统 - 后端主入口
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from survey.core.config import settings
from survey.core.database import init_db
from survey.core.exceptions import VoteError
from survey.core.logging import configure_logging, get_logger
from survey.core.utils import now_timestamp
from survey.api import api_router

configure_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用启动时初始化数据库，数据库不可用时仍然启动HTTP服务"""
    logger.info("🚀 启动投票系统后端服务...")
    try:
        init_db()
        logger.info(f"🗄️ 数据库状态: ✅ 已连接 ({settings.DATABASE_NAME})")
    except SQLAlchemyError as e:
        logger.warning(f"⚠️ 数据库初始化失败: {e}")
        logger.warning("⚠️ 服务器将以只读模式启动，接口将返回503")
    yield
    logger.info("正在关闭服务器...")


app = FastAPI(
    title=settings.APP_NAME,
    description="单次提交投票系统后端API",
    version=settings.VERSION,
    lifespan=lifespan,
)

# CORS设置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册API路由
app.include_router(api_router, prefix="/api")


def _error_body(error: str, message=None) -> dict:
    body = {"success": False, "error": error, "timestamp": now_timestamp()}
    if message:
        body["message"] = message
    return body


@app.exception_handler(VoteError)
async def vote_error_handler(request: Request, exc: VoteError):
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.error, exc.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # 请求数据格式错误统一返回400
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content=_error_body("数据格式错误", details))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    error = "接口不存在" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_body(error))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"服务器错误: {exc}")
    return JSONResponse(status_code=500, content=_error_body("服务器内部错误"))


@app.get("/")
async def root():
    """根路径健康检查"""
    return {"message": "投票系统后端运行中", "status": "healthy"}

@app.get("/health")
async def health_check():
    """健康检查端点"""
    return {"status": "healthy", "service": "survey-vote-backend"}

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
