from typing import List, Optional
from sqlalchemy.orm import Session

from loyaltyapi.models.livestream import Livestream as LivestreamModel, LivestreamStatus
from loyaltyapi.schemas.livestream import LivestreamResponse
from loyaltyapi.repositories.base import BaseRepository


class LivestreamRepository(BaseRepository[LivestreamModel, LivestreamResponse]):
    def __init__(self, db: Session):
        super().__init__(LivestreamModel, LivestreamResponse, db)

    def get_active(self) -> Optional[LivestreamResponse]:
        self._ensure_clean_session()
        row = (
            self.db.query(self.model_class)
            .filter(self.model_class.status == LivestreamStatus.ACTIVE.value)
            .order_by(self.model_class.id.desc())
            .first()
        )
        return self._to_schema(row)

    def finish_all_active(self) -> int:
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.status == LivestreamStatus.ACTIVE.value)
            .update(
                {self.model_class.status: LivestreamStatus.FINISHED.value},
                synchronize_session=False,
            )
        )

    def finish(self, stream_id: int) -> Optional[LivestreamResponse]:
        return self.update(stream_id, status=LivestreamStatus.FINISHED.value)

    def list_recent(self, limit: int = 20) -> List[LivestreamResponse]:
        self._ensure_clean_session()
        rows = (
            self.db.query(self.model_class)
            .order_by(self.model_class.id.desc())
            .limit(limit)
            .all()
        )
        return [self._to_schema(row) for row in rows]
