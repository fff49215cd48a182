"""
포인트 정산 엔진

모든 잔액 변경은 이 서비스의 apply_delta를 통과합니다.

- apply_delta: 호출 측 정산 단위 안에서 사용자 행을 잠그고 잔액 변경 + 원장 기록
- settlement(): 정산 단위 (성공 시 커밋 후 알림 발행, 실패 시 전체 롤백)
- settle_delta: apply_delta 하나를 독립된 정산 단위로 실행

보상 출처(태스크, 클레임 코드, 팁, 래플, 채팅)는 자신의 마커 기록과 apply_delta를
같은 settlement() 안에서 수행해 "잔액 변경 + 원장 + 마커"가 함께 커밋되거나 함께 사라지게 합니다.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from loyaltyapi.config import Settings, settings as default_settings
from loyaltyapi.core.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    ValidationError,
)
from loyaltyapi.models.points import LedgerSource, PointsLedger
from loyaltyapi.providers.queue.events import BalanceChangedEvent
from loyaltyapi.repositories.points_repository import PointsRepository
from loyaltyapi.schemas.points import (
    AdminPointsAdjustmentRequest,
    PointsBalanceResponse,
    PointsIntegrityCheckResponse,
    PointsLedgerResponse,
    PointsTransactionResponse,
)
from loyaltyapi.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class PointService:
    """포인트 관련 비즈니스 로직을 담당하는 서비스"""

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        notifier: Optional[NotificationService] = None,
    ):
        self.db = db
        self.settings = settings or default_settings
        self.points_repo = PointsRepository(db)
        self.notifier = notifier or NotificationService(self.settings)
        self._pending_events: List[BalanceChangedEvent] = []
        self._in_settlement = False

    # ------------------------------------------------------------------
    # 정산 단위
    # ------------------------------------------------------------------

    @contextmanager
    def settlement(self):
        """
        정산 단위 컨텍스트

        블록이 정상 종료되면 커밋하고 대기 중인 잔액 변경 알림을 발행합니다.
        예외가 발생하면 롤백하고 알림을 버린 뒤 예외를 그대로 다시 던집니다.
        이미 열린 정산 단위 안에서 다시 호출하면 바깥 단위에 합류합니다.
        """
        if self._in_settlement:
            yield self
            return

        self._in_settlement = True
        try:
            yield self
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._pending_events.clear()
            raise
        finally:
            self._in_settlement = False

        self._publish_pending()

    def _publish_pending(self) -> None:
        events, self._pending_events = self._pending_events, []
        for event in events:
            self.notifier.publish(event)

    def apply_delta(
        self,
        user_id: int,
        delta: int,
        reason: str,
        source: Union[LedgerSource, str],
    ) -> PointsLedger:
        """
        호출 측 정산 단위 안에서 잔액 변경

        Raises:
            InvalidAmountError: delta가 0이거나 정수가 아님
            ValidationError: 알 수 없는 원장 출처
            UserNotFoundError: 사용자 없음
            InsufficientBalanceError: 차감 후 잔액이 음수가 되는 경우
        """
        if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
            raise InvalidAmountError(details={"delta": delta})

        try:
            source_value = LedgerSource(source).value
        except ValueError:
            raise ValidationError("Unknown ledger source", details={"source": str(source)})
        user = self.points_repo.lock_user(user_id)

        if delta < 0 and user.points < -delta:
            logger.info(
                f"Insufficient balance for user {user_id}: balance={user.points}, delta={delta}"
            )
            raise InsufficientBalanceError(
                details={"balance": user.points, "required": -delta}
            )

        entry = self.points_repo.apply_to_locked_user(user, delta, reason, source_value)
        self._pending_events.append(
            BalanceChangedEvent(
                user_id=user_id,
                delta_points=delta,
                balance_after=entry.balance_after,
                source=source_value,
                ledger_id=entry.id,
            )
        )
        logger.info(
            f"Applied {delta:+d} points to user {user_id} ({source_value}): "
            f"balance_after={entry.balance_after}"
        )
        return entry

    def settle_delta(
        self,
        user_id: int,
        delta: int,
        reason: str,
        source: Union[LedgerSource, str],
    ) -> PointsTransactionResponse:
        """apply_delta 하나를 독립된 정산 단위로 실행"""
        with self.settlement():
            entry = self.apply_delta(user_id, delta, reason, source)

        return PointsTransactionResponse(
            success=True,
            transaction_id=entry.id,
            delta_points=entry.delta_points,
            balance_after=entry.balance_after,
            message="Transaction completed successfully",
        )

    def admin_adjust_points(
        self, admin_id: int, user_id: int, request: AdminPointsAdjustmentRequest
    ) -> PointsTransactionResponse:
        """관리자 포인트 지급/차감 - 원장에 admin 출처로 기록"""
        logger.info(
            f"Admin {admin_id} adjusting user {user_id} by {request.amount}: {request.reason}"
        )
        return self.settle_delta(
            user_id=user_id,
            delta=request.amount,
            reason=f"Admin adjustment by {admin_id}: {request.reason}",
            source=LedgerSource.ADMIN,
        )

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def get_user_balance(self, user_id: int) -> PointsBalanceResponse:
        """사용자 포인트 잔액 조회"""
        return self.points_repo.get_balance_response(user_id)

    def get_user_ledger(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> PointsLedgerResponse:
        """사용자 포인트 거래 내역 조회 (limit 최대 100)"""
        limit = max(1, min(limit, self.settings.HISTORY_MAX_LIMIT))
        ledger = self.points_repo.get_user_ledger(
            user_id=user_id, limit=limit, offset=max(0, offset)
        )
        logger.debug(f"Retrieved ledger for user {user_id}: {ledger.total_count} entries")
        return ledger

    def can_afford(self, user_id: int, amount: int) -> bool:
        return self.points_repo.get_user_balance(user_id) >= amount

    def verify_user_integrity(self, user_id: int) -> PointsIntegrityCheckResponse:
        result = self.points_repo.verify_integrity_for_user(user_id)
        if result.status != "OK":
            logger.error(
                f"Ledger mismatch for user {user_id}: ledger={result.calculated_balance}, "
                f"recorded={result.recorded_balance}"
            )
        return result

    def verify_global_integrity(self) -> PointsIntegrityCheckResponse:
        result = self.points_repo.verify_global_integrity()
        if result.mismatched_users:
            logger.error(f"Ledger mismatch for users {result.mismatched_users}")
        return result
