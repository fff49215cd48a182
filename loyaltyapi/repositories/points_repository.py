"""
포인트 리포지토리 - 잔액 행 잠금과 원장 기록

이 파일은 정산 엔진이 사용하는 저장소 연산을 담당합니다:
1. 사용자 잔액 행 잠금 (SELECT ... FOR UPDATE)
2. 잔액 변경 + 원장 항목 추가
3. 거래 내역 조회
4. 데이터 정합성 검증 (원장 합계 == users.points)

여기의 쓰기 연산은 커밋하지 않습니다. 커밋/롤백은 PointService.settlement()가 결정합니다.
"""

from datetime import datetime, timezone
from typing import Iterable, List

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from loyaltyapi.core.exceptions import UserNotFoundError
from loyaltyapi.models.points import LedgerStatus, PointsLedger as PointsLedgerModel
from loyaltyapi.models.user import User as UserModel
from loyaltyapi.repositories.base import BaseRepository
from loyaltyapi.schemas.points import (
    PointsBalanceResponse,
    PointsIntegrityCheckResponse,
    PointsLedgerEntry,
    PointsLedgerResponse,
)
from loyaltyapi.utils.timezone_utils import format_utc


class PointsRepository(BaseRepository[PointsLedgerModel, PointsLedgerEntry]):
    """
    포인트 리포지토리

    잠금 순서 규칙: 여러 사용자를 잠글 때는 항상 id 오름차순으로 잠급니다 (교착 방지).
    """

    def __init__(self, db: Session):
        super().__init__(PointsLedgerModel, PointsLedgerEntry, db)

    def _to_ledger_entry(self, model_instance: PointsLedgerModel) -> PointsLedgerEntry:
        """delta_points 부호로 거래 유형(CREDIT/DEBIT)을 결정해 스키마로 변환"""
        delta_points = model_instance.delta_points
        return PointsLedgerEntry(
            id=model_instance.id,
            transaction_type="CREDIT" if delta_points > 0 else "DEBIT",
            delta_points=delta_points,
            balance_after=model_instance.balance_after,
            reason=model_instance.reason,
            source=model_instance.source,
            status=model_instance.status,
            created_at=format_utc(model_instance.created_at),
        )

    # ------------------------------------------------------------------
    # 잠금
    # ------------------------------------------------------------------

    def lock_user(self, user_id: int) -> UserModel:
        """사용자 잔액 행을 FOR UPDATE로 잠그고 반환"""
        self._ensure_clean_session()
        # populate_existing이 아직 flush되지 않은 변경을 덮어쓰지 않도록
        self.db.flush()
        user = (
            self.db.query(UserModel)
            .filter(UserModel.id == user_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def lock_users(self, user_ids: Iterable[int]) -> dict:
        """여러 사용자를 id 오름차순으로 잠금 - {user_id: User}"""
        locked = {}
        for user_id in sorted(set(user_ids)):
            locked[user_id] = self.lock_user(user_id)
        return locked

    # ------------------------------------------------------------------
    # 쓰기
    # ------------------------------------------------------------------

    def apply_to_locked_user(
        self, user: UserModel, delta_points: int, reason: str, source: str
    ) -> PointsLedgerModel:
        """잠긴 사용자 행의 잔액을 바꾸고 원장 항목을 추가 (검증은 호출 측 책임)"""
        new_balance = user.points + delta_points
        user.points = new_balance

        ledger_entry = self.model_class(
            user_id=user.id,
            delta_points=delta_points,
            reason=reason,
            source=source,
            status=LedgerStatus.SUCCESS.value,
            balance_after=new_balance,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(ledger_entry)
        self.db.flush()
        return ledger_entry

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def get_user_balance(self, user_id: int) -> int:
        """users.points 기준 현재 잔액"""
        self._ensure_clean_session()
        balance = (
            self.db.query(UserModel.points).filter(UserModel.id == user_id).scalar()
        )
        if balance is None:
            raise UserNotFoundError(user_id)
        return balance

    def get_balance_response(self, user_id: int) -> PointsBalanceResponse:
        return PointsBalanceResponse(balance=self.get_user_balance(user_id))

    def _user_entries(self, user_id: int):
        return self.db.query(self.model_class).filter(
            self.model_class.user_id == user_id
        )

    def get_recent_entries(self, user_id: int, limit: int = 5) -> List[PointsLedgerEntry]:
        self._ensure_clean_session()
        rows = (
            self._user_entries(user_id)
            .order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .limit(limit)
            .all()
        )
        return [self._to_ledger_entry(row) for row in rows]

    def get_user_ledger(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> PointsLedgerResponse:
        """사용자 포인트 원장 조회 (페이징, 최신순)"""
        self._ensure_clean_session()
        total_count = self._user_entries(user_id).count()
        rows = (
            self._user_entries(user_id)
            .order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .limit(limit)
            .offset(offset)
            .all()
        )

        return PointsLedgerResponse(
            balance=self.get_user_balance(user_id),
            entries=[self._to_ledger_entry(row) for row in rows],
            total_count=total_count,
            has_next=offset + limit < total_count,
        )

    # ------------------------------------------------------------------
    # 정합성 검증
    # ------------------------------------------------------------------

    def _success_sum(self, user_id: int) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(self.model_class.delta_points), 0))
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.status == LedgerStatus.SUCCESS.value,
            )
            .scalar()
        )
        return int(total or 0)

    def verify_integrity_for_user(self, user_id: int) -> PointsIntegrityCheckResponse:
        """
        특정 사용자의 포인트 정합성 검증

        success 항목의 delta_points 합계가 users.points와 같아야 합니다.
        """
        recorded_balance = self.get_user_balance(user_id)
        calculated_balance = self._success_sum(user_id)
        entry_count = self._user_entries(user_id).count()

        return PointsIntegrityCheckResponse(
            status="OK" if calculated_balance == recorded_balance else "MISMATCH",
            user_id=user_id,
            calculated_balance=calculated_balance,
            recorded_balance=recorded_balance,
            entry_count=entry_count,
            mismatched_users=[] if calculated_balance == recorded_balance else [user_id],
            verified_at=format_utc(datetime.now(timezone.utc)),
        )

    def verify_global_integrity(self) -> PointsIntegrityCheckResponse:
        """
        전체 사용자 정합성 검증

        사용자별 원장 합계와 users.points를 비교하고 불일치 사용자 목록을 돌려줍니다.
        """
        self._ensure_clean_session()
        sums = dict(
            self.db.query(
                self.model_class.user_id, func.sum(self.model_class.delta_points)
            )
            .filter(self.model_class.status == LedgerStatus.SUCCESS.value)
            .group_by(self.model_class.user_id)
            .all()
        )
        balances = self.db.query(UserModel.id, UserModel.points).all()

        mismatched = [
            user_id
            for user_id, points in balances
            if int(sums.get(user_id) or 0) != points
        ]
        entry_count = self.db.query(func.count(self.model_class.id)).scalar() or 0

        return PointsIntegrityCheckResponse(
            status="OK" if not mismatched else "MISMATCH",
            user_id=None,
            calculated_balance=int(sum(int(v or 0) for v in sums.values())),
            recorded_balance=int(sum(points for _, points in balances)),
            entry_count=entry_count,
            mismatched_users=mismatched,
            verified_at=format_utc(datetime.now(timezone.utc)),
        )
