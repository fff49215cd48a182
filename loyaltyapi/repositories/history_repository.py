from typing import List, Tuple

from sqlalchemy import case, func, literal, select, union_all
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from loyaltyapi.models.points import PointsLedger
from loyaltyapi.models.task import CompletionStatus, Task, TaskCompletion

LEDGER_KIND = "POINT"


class HistoryRepository:
    """
    원장 + 태스크 수행 기록 통합 조회

    두 테이블을 UNION ALL로 합친 뒤 정렬/페이징까지 DB에서 처리합니다.
    kind 컬럼은 원장 행이면 POINT, 태스크 행이면 수행 상태값입니다.
    """

    def __init__(self, db: Session):
        self.db = db

    def _merged(self, user_id: int):
        ledger = select(
            PointsLedger.id.label("id"),
            PointsLedger.created_at.label("created_at"),
            PointsLedger.reason.label("description"),
            PointsLedger.delta_points.label("change_amount"),
            literal(LEDGER_KIND).label("kind"),
        ).where(PointsLedger.user_id == user_id)

        completions = (
            select(
                TaskCompletion.id,
                func.coalesce(TaskCompletion.completed_at, TaskCompletion.created_at),
                Task.title,
                # 승인된 태스크만 보상 금액 표시
                case(
                    (TaskCompletion.status == CompletionStatus.APPROVED.value, Task.reward),
                    else_=0,
                ),
                TaskCompletion.status,
            )
            .join(Task, Task.id == TaskCompletion.task_id)
            .where(TaskCompletion.user_id == user_id)
        )
        return union_all(ledger, completions).subquery("history")

    def page(self, user_id: int, limit: int, offset: int) -> Tuple[List[Row], int]:
        """최신순(동일 시각은 id 내림차순) 한 페이지와 전체 건수"""
        merged = self._merged(user_id)
        rows = self.db.execute(
            select(merged)
            .order_by(merged.c.created_at.desc().nulls_last(), merged.c.id.desc())
            .limit(limit)
            .offset(offset)
        ).all()
        total = self.db.execute(select(func.count()).select_from(merged)).scalar_one()
        return rows, total
