# 业务逻辑服务包
from .vote_service import VoteService
from .query_service import QueryService
from .admin_service import DatabaseAdminService

__all__ = ["VoteService", "QueryService", "DatabaseAdminService"]
