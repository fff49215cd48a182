"""
타임존 유틸리티

모든 시각은 UTC 기준으로 저장/비교합니다.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """현재 UTC 시간을 반환합니다."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """naive datetime은 UTC로 간주합니다 (SQLite는 tzinfo를 보존하지 않음)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_utc(dt: Optional[datetime]) -> str:
    if dt is None:
        return ""
    return ensure_utc(dt).strftime("%Y-%m-%d %H:%M:%S")
