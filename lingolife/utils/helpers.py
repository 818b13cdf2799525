import json
import math
from datetime import date, datetime, timezone
from typing import Any

def format_timestamp(dt: datetime = None) -> str:
    """格式化时间戳"""
    if not dt:
        dt = datetime.now(timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")

def utc_today() -> date:
    """按UTC取当前日期"""
    return datetime.now(timezone.utc).date()

def safe_json_loads(json_str: str, default: Any = None) -> Any:
    """安全的JSON解析"""
    try:
        return json.loads(json_str)
    except (json.JSONDecodeError, TypeError):
        return default

def round_half_up(value: float) -> int:
    """四舍五入到整数，0.5 向上取整（内置 round 是银行家舍入）"""
    return int(math.floor(value + 0.5))
