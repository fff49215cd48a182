from datetime import datetime, timezone
from typing import List
from sqlalchemy.orm import Session

from loyaltyapi.models.activity_log import ActivityLog as ActivityLogModel
from loyaltyapi.schemas.history import ActivityLogItem
from loyaltyapi.repositories.base import BaseRepository


class ActivityLogRepository(BaseRepository[ActivityLogModel, ActivityLogItem]):
    """관리자 대시보드용 감사 로그 (표시 전용)"""

    def __init__(self, db: Session):
        super().__init__(ActivityLogModel, ActivityLogItem, db)

    def append(self, description: str) -> None:
        self.db.add(
            self.model_class(description=description, created_at=datetime.now(timezone.utc))
        )
        self.db.flush()

    def recent(self, limit: int = 5) -> List[ActivityLogItem]:
        self._ensure_clean_session()
        rows = (
            self.db.query(self.model_class)
            .order_by(self.model_class.created_at.desc(), self.model_class.id.desc())
            .limit(limit)
            .all()
        )
        return [self._to_schema(row) for row in rows]
