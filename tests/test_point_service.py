import threading

import pytest

from loyaltyapi.core.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    UserNotFoundError,
    ValidationError,
)
from loyaltyapi.models.points import LedgerSource, PointsLedger
from loyaltyapi.models.user import User
from loyaltyapi.providers.queue.events import BalanceChangedEvent
from loyaltyapi.schemas.points import AdminPointsAdjustmentRequest
from loyaltyapi.services.point_service import PointService


class TestSettleDelta:
    """정산 엔진 단일 변경 테스트"""

    def test_credit_updates_balance_and_ledger(
        self, point_service, create_user, balance_of, assert_ledger_invariant
    ):
        """지급 시 잔액과 원장이 함께 기록됨"""
        # Given
        user_id = create_user("alice")

        # When
        result = point_service.settle_delta(user_id, 150, "Task reward", LedgerSource.TASK)

        # Then
        assert result.success is True
        assert result.delta_points == 150
        assert result.balance_after == 150
        assert balance_of(user_id) == 150
        assert_ledger_invariant()

    def test_debit_below_zero_is_rejected(
        self, point_service, db, create_user, balance_of, assert_ledger_invariant
    ):
        """잔액보다 큰 차감은 InsufficientBalanceError, 아무것도 기록되지 않음"""
        # Given
        user_id = create_user("bob", points=50)

        # When / Then
        with pytest.raises(InsufficientBalanceError):
            point_service.settle_delta(user_id, -51, "Raffle tickets", LedgerSource.RAFFLE)

        assert balance_of(user_id) == 50
        assert db.query(PointsLedger).filter(PointsLedger.user_id == user_id).count() == 1
        assert_ledger_invariant()

    def test_debit_to_exactly_zero(self, point_service, create_user, balance_of):
        user_id = create_user("carol", points=200)

        result = point_service.settle_delta(user_id, -200, "Raffle", LedgerSource.RAFFLE)

        assert result.balance_after == 0
        assert balance_of(user_id) == 0

    @pytest.mark.parametrize("delta", [0, True, 1.5])
    def test_invalid_delta(self, point_service, create_user, delta):
        user_id = create_user("dave")

        with pytest.raises(InvalidAmountError):
            point_service.settle_delta(user_id, delta, "bad", LedgerSource.ADMIN)

    def test_unknown_user(self, point_service):
        with pytest.raises(UserNotFoundError):
            point_service.settle_delta(999999, 10, "ghost", LedgerSource.ADMIN)

    def test_unknown_source_is_rejected(self, point_service, create_user, balance_of):
        user_id = create_user("erin")

        with pytest.raises(ValidationError) as exc_info:
            point_service.settle_delta(user_id, 10, "?", "lottery")

        assert exc_info.value.status_code == 422
        assert exc_info.value.details == {"source": "lottery"}
        assert balance_of(user_id) == 0


class TestSettlementUnit:
    """정산 단위(settlement) 커밋/롤백 테스트"""

    def test_failure_rolls_back_every_change(
        self, point_service, db, create_user, balance_of, assert_ledger_invariant
    ):
        """블록 안의 두 번째 변경이 실패하면 첫 번째 변경도 사라짐"""
        # Given
        sender = create_user("sender", points=100)
        recipient = create_user("recipient")

        # When
        with pytest.raises(InsufficientBalanceError):
            with point_service.settlement():
                point_service.apply_delta(recipient, 500, "Tip", LedgerSource.TIP)
                point_service.apply_delta(sender, -500, "Tip", LedgerSource.TIP)

        # Then
        assert balance_of(sender) == 100
        assert balance_of(recipient) == 0
        assert db.query(PointsLedger).filter(PointsLedger.user_id == recipient).count() == 0
        assert_ledger_invariant()

    def test_notifications_published_after_commit(
        self, point_service, notifier, create_user
    ):
        user_id = create_user("frank")

        with point_service.settlement():
            point_service.apply_delta(user_id, 10, "a", LedgerSource.ADMIN)
            point_service.apply_delta(user_id, 5, "b", LedgerSource.ADMIN)
            # 커밋 전에는 발행하지 않음
            notifier.publish.assert_not_called()

        assert notifier.publish.call_count == 2
        event = notifier.publish.call_args_list[-1].args[0]
        assert isinstance(event, BalanceChangedEvent)
        assert event.user_id == user_id
        assert event.delta_points == 5
        assert event.balance_after == 15

    def test_no_notification_on_failure(self, point_service, notifier, create_user):
        user_id = create_user("grace", points=10)
        notifier.publish.reset_mock()

        with pytest.raises(InsufficientBalanceError):
            with point_service.settlement():
                point_service.apply_delta(user_id, 5, "ok", LedgerSource.ADMIN)
                point_service.apply_delta(user_id, -100, "too much", LedgerSource.ADMIN)

        notifier.publish.assert_not_called()

    def test_nested_settlement_joins_outer(
        self, point_service, create_user, balance_of, assert_ledger_invariant
    ):
        """안쪽 settle_delta는 바깥 단위에 합류하므로 바깥 실패 시 함께 롤백"""
        user_id = create_user("heidi")

        with pytest.raises(RuntimeError):
            with point_service.settlement():
                point_service.settle_delta(user_id, 30, "inner", LedgerSource.ADMIN)
                raise RuntimeError("boom")

        assert balance_of(user_id) == 0
        assert_ledger_invariant()

    def test_balance_after_tracks_sequence(self, point_service, db, create_user):
        user_id = create_user("ivan")

        point_service.settle_delta(user_id, 100, "1", LedgerSource.ADMIN)
        point_service.settle_delta(user_id, -40, "2", LedgerSource.RAFFLE)
        point_service.settle_delta(user_id, 15, "3", LedgerSource.TIP)

        db.rollback()
        rows = (
            db.query(PointsLedger)
            .filter(PointsLedger.user_id == user_id)
            .order_by(PointsLedger.id)
            .all()
        )
        assert [r.balance_after for r in rows] == [100, 60, 75]


class TestAdminAndQueries:
    def test_admin_adjust_points(self, point_service, create_user, balance_of):
        user_id = create_user("judy", points=20)

        result = point_service.admin_adjust_points(
            admin_id=1,
            user_id=user_id,
            request=AdminPointsAdjustmentRequest(amount=-20, reason="Abuse"),
        )

        assert result.balance_after == 0
        assert balance_of(user_id) == 0

    def test_admin_adjust_cannot_go_negative(self, point_service, create_user):
        user_id = create_user("ken", points=5)

        with pytest.raises(InsufficientBalanceError):
            point_service.admin_adjust_points(
                1, user_id, AdminPointsAdjustmentRequest(amount=-6, reason="x")
            )

    def test_ledger_is_paginated_newest_first(self, point_service, create_user):
        user_id = create_user("leo")
        for i in range(1, 4):
            point_service.settle_delta(user_id, i, f"step {i}", LedgerSource.ADMIN)

        page = point_service.get_user_ledger(user_id, limit=2, offset=0)

        assert page.balance == 6
        assert page.total_count == 3
        assert page.has_next is True
        assert [e.delta_points for e in page.entries] == [3, 2]
        assert page.entries[0].transaction_type == "CREDIT"

    def test_can_afford(self, point_service, create_user):
        user_id = create_user("mia", points=100)

        assert point_service.can_afford(user_id, 100) is True
        assert point_service.can_afford(user_id, 101) is False

    def test_integrity_ok(self, point_service, create_user):
        user_id = create_user("nick", points=70)

        assert point_service.verify_user_integrity(user_id).status == "OK"
        assert point_service.verify_global_integrity().mismatched_users == []

    def test_integrity_detects_out_of_band_update(self, point_service, db, create_user):
        """원장을 거치지 않은 잔액 변경은 MISMATCH로 보고"""
        user_id = create_user("olga", points=10)
        db.query(User).filter(User.id == user_id).update({"points": 999})
        db.commit()

        result = point_service.verify_global_integrity()

        assert result.status == "MISMATCH"
        assert result.mismatched_users == [user_id]
        assert point_service.verify_user_integrity(user_id).recorded_balance == 999


class TestConcurrentSettlement:
    def test_parallel_credits_are_serialized(
        self, db, session_factory, settings, notifier, create_user, balance_of,
        assert_ledger_invariant,
    ):
        """같은 사용자에 대한 동시 +1 정산 N건 후 잔액은 정확히 N"""
        # Given
        user_id = create_user("crowd")
        db.rollback()
        workers = 8
        errors = []

        def credit():
            session = session_factory()
            try:
                PointService(session, settings=settings, notifier=notifier).settle_delta(
                    user_id, 1, "Chat activity", LedgerSource.CHAT_ACTIVITY
                )
            except Exception as exc:  # pragma: no cover - 실패 시 아래 assert로 보고
                errors.append(exc)
            finally:
                session.close()

        # When
        threads = [threading.Thread(target=credit) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Then
        assert errors == []
        assert balance_of(user_id) == workers
        assert_ledger_invariant()
