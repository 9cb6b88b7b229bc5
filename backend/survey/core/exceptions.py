"""
业务异常定义

服务层抛出这些异常，由 main.py 中注册的异常处理器统一转换为
{success: false, error, message, timestamp} 格式的响应。
"""

from typing import Optional


class VoteError(Exception):
    """投票业务异常基类"""
    status_code = 500
    default_error = "服务器内部错误"

    def __init__(self, error: Optional[str] = None, message: Optional[str] = None):
        self.error = error or self.default_error
        self.message = message
        super().__init__(self.error if message is None else f"{self.error}: {message}")


class InvalidInputError(VoteError):
    """请求数据格式错误"""
    status_code = 400
    default_error = "数据格式错误：用户名和选项不能为空"


class ConflictError(VoteError):
    """用户名重复"""
    status_code = 409
    default_error = "用户已投票，每个用户只能投票一次"


class NotFoundError(VoteError):
    """投票记录不存在"""
    status_code = 404
    default_error = "投票记录不存在"


class StoreUnavailableError(VoteError):
    """数据库不可用（连接或事务失败，不自动重试）"""
    status_code = 503
    default_error = "DATABASE_UNAVAILABLE"
    default_message = "数据库服务不可用，请使用本地存储模式"

    def __init__(self, error: Optional[str] = None, message: Optional[str] = None):
        super().__init__(error, message or self.default_message)
