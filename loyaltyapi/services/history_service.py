"""
활동 내역 프로젝션 (읽기 전용)

포인트 원장 항목과 태스크 수행 기록을 하나의 시간 역순 목록으로 병합합니다.
표시 전용이며 잔액 계산에는 절대 사용하지 않습니다.
승인된 태스크는 원장 항목(POINT)과 TASK_APPROVED 항목 두 줄로 모두 표시됩니다.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from loyaltyapi.config import Settings, settings as default_settings
from loyaltyapi.models.task import CompletionStatus
from loyaltyapi.repositories.activity_log_repository import ActivityLogRepository
from loyaltyapi.repositories.history_repository import LEDGER_KIND, HistoryRepository
from loyaltyapi.repositories.points_repository import PointsRepository
from loyaltyapi.schemas.history import (
    ActivityLogItem,
    HistoryItem,
    HistoryItemType,
    HistoryResponse,
)
from loyaltyapi.schemas.points import PointsLedgerEntry
from loyaltyapi.utils.timezone_utils import ensure_utc

logger = logging.getLogger(__name__)

_TASK_TYPES = {
    CompletionStatus.APPROVED.value: HistoryItemType.TASK_APPROVED,
    CompletionStatus.REJECTED.value: HistoryItemType.TASK_REJECTED,
    CompletionStatus.PENDING.value: HistoryItemType.TASK_PENDING,
}


class HistoryService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.history_repo = HistoryRepository(db)
        self.activity_repo = ActivityLogRepository(db)
        self.points_repo = PointsRepository(db)

    def get_user_history(
        self, user_id: int, limit: int = 20, offset: int = 0
    ) -> HistoryResponse:
        """원장 + 태스크 기록 병합, 최신순 (동일 시각은 id 내림차순)"""
        limit = max(1, min(limit, self.settings.HISTORY_MAX_LIMIT))
        offset = max(0, offset)

        rows, total = self.history_repo.page(user_id, limit=limit, offset=offset)
        items = [
            HistoryItem(
                id=row.id,
                created_at=ensure_utc(row.created_at),
                description=row.description,
                change_amount=row.change_amount,
                type=HistoryItemType.POINT if row.kind == LEDGER_KIND else _TASK_TYPES[row.kind],
            )
            for row in rows
        ]
        return HistoryResponse(items=items, total_count=total, has_next=offset + limit < total)

    def get_recent_points(self, user_id: int, limit: int = 5) -> List[PointsLedgerEntry]:
        """최근 원장 항목 (교환 화면용)"""
        return self.points_repo.get_recent_entries(user_id, limit)

    def get_recent_activity(self, limit: int = 5) -> List[ActivityLogItem]:
        """관리자 대시보드용 - 저장소 오류 시 빈 목록"""
        try:
            return self.activity_repo.recent(limit)
        except Exception as e:
            logger.warning(f"Failed to load recent activity: {str(e)}")
            self.db.rollback()
            return []
