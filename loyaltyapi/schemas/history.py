from enum import Enum
from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class HistoryItemType(str, Enum):
    POINT = "POINT"
    TASK_APPROVED = "TASK_APPROVED"
    TASK_REJECTED = "TASK_REJECTED"
    TASK_PENDING = "TASK_PENDING"


class HistoryItem(BaseModel):
    """통합 활동 내역 항목 (표시 전용, 잔액 계산에 사용하지 않음)"""

    id: int
    created_at: Optional[datetime] = None
    description: str
    change_amount: int
    type: HistoryItemType


class HistoryResponse(BaseModel):
    items: List[HistoryItem]
    total_count: int
    has_next: bool


class ActivityLogItem(BaseModel):
    description: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
