"""
工具函数模块
"""

import json
import re
from typing import Any, Iterable, List, Optional
from datetime import datetime, timezone

# 兼容半角和全角逗号分隔的旧数据
_OPTION_SEPARATOR = re.compile(r"[,，]")


def utcnow() -> datetime:
    """当前UTC时间（不带时区信息，与数据库中存储的格式一致）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_timestamp_with_timezone(timestamp: Optional[datetime]) -> str:
    """格式化时间戳，确保包含UTC时区标识符"""
    if not timestamp:
        return ""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    # 确保发送给前端的时间戳包含'Z'后缀，表示这是UTC时间
    return timestamp.isoformat() + 'Z'


def parse_timestamp(value: Any) -> Optional[datetime]:
    """解析备份数据中的时间，统一转换为不带时区的UTC时间"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        # MySQL导出的格式: 2024-01-01 12:00:00
        parsed = datetime.fromisoformat(text.replace(" ", "T", 1))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def normalize_options(options: Iterable[Any]) -> List[str]:
    """去除空白、空项和重复项，保留首次出现的顺序"""
    result: List[str] = []
    for option in options:
        if option is None:
            continue
        text = str(option).strip()
        if text and text not in result:
            result.append(text)
    return result


def parse_selected_options(data: Any) -> List[str]:
    """
    解析选项数据

    支持三种格式：列表、JSON数组字符串、逗号分隔的字符串（手动导入的CSV数据）。
    JSON解析失败时抛出 ValueError。
    """
    if data is None:
        return []
    if isinstance(data, (list, tuple)):
        return normalize_options(data)
    if isinstance(data, str):
        text = data.strip()
        if text.startswith("["):
            parsed = json.loads(text)
            if not isinstance(parsed, list):
                raise ValueError("选项数据必须是数组")
            return normalize_options(parsed)
        return normalize_options(_OPTION_SEPARATOR.split(text))
    raise ValueError(f"不支持的选项数据类型: {type(data).__name__}")


def serialize_options(options: List[str]) -> str:
    """序列化选项列表用于存储，失败时抛出 ValueError"""
    try:
        return json.dumps(options, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ValueError(f"选项数据无法序列化: {e}") from e


def backup_filename(now: Optional[datetime] = None) -> str:
    """生成备份文件名，如 backup_2024-01-01T12-00-00.json"""
    now = now or utcnow()
    return f"backup_{now.strftime('%Y-%m-%dT%H-%M-%S')}.json"


def now_timestamp() -> str:
    """当前时间的ISO格式字符串，用于接口响应"""
    return format_timestamp_with_timezone(utcnow())
