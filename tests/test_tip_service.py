import threading

import pytest

from loyaltyapi.core.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    RecipientNotFoundError,
    SelfTipError,
)
from loyaltyapi.models.tip import TipTransfer
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.tip_service import TipService


@pytest.fixture
def tip_service(db, settings, point_service):
    return TipService(db, settings=settings, point_service=point_service)


class TestSendTip:
    """팁 송금 테스트"""

    def test_success_moves_points(
        self, tip_service, notifier, create_user, balance_of, assert_ledger_invariant
    ):
        # Given
        alice = create_user("alice", points=100)
        bob = create_user("bob", points=5)

        # When
        result = tip_service.send_tip(alice, " bob ", 40)

        # Then
        assert result.amount == 40
        assert result.recipient_username == "bob"
        assert result.balance_after == 60
        assert balance_of(alice) == 60
        assert balance_of(bob) == 45
        assert notifier.publish.call_count == 2
        assert_ledger_invariant()

    def test_insufficient_balance_changes_nothing(
        self, tip_service, db, create_user, balance_of, assert_ledger_invariant
    ):
        alice = create_user("alice", points=10)
        bob = create_user("bob")

        with pytest.raises(InsufficientBalanceError):
            tip_service.send_tip(alice, "bob", 11)

        assert balance_of(alice) == 10
        assert balance_of(bob) == 0
        assert db.query(TipTransfer).count() == 0
        assert_ledger_invariant()

    @pytest.mark.parametrize("recipient", ["alice", "ALICE", " Alice "])
    def test_self_tip(self, tip_service, create_user, recipient):
        alice = create_user("alice", points=10)

        with pytest.raises(SelfTipError):
            tip_service.send_tip(alice, recipient, 1)

    def test_unknown_recipient(self, tip_service, create_user):
        alice = create_user("alice", points=10)

        with pytest.raises(RecipientNotFoundError):
            tip_service.send_tip(alice, "nobody", 1)

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount(self, tip_service, create_user, amount):
        alice = create_user("alice", points=10)
        create_user("bob")

        with pytest.raises(InvalidAmountError):
            tip_service.send_tip(alice, "bob", amount)

    def test_history_for_both_sides(self, tip_service, create_user):
        alice = create_user("alice", points=50)
        bob = create_user("bob", points=50)
        tip_service.send_tip(alice, "bob", 10)
        tip_service.send_tip(bob, "alice", 3)

        history = tip_service.get_tip_history(alice)

        assert len(history) == 2
        assert {(h.sender_username, h.amount) for h in history} == {("alice", 10), ("bob", 3)}


def test_crossing_tips_do_not_deadlock(
    db, session_factory, settings, notifier, create_user, balance_of, assert_ledger_invariant
):
    """서로에게 동시에 송금해도 교착 없이 총합이 보존됨"""
    alice = create_user("alice", points=100)
    bob = create_user("bob", points=100)
    db.rollback()
    errors = []

    def tip(sender_id, recipient):
        session = session_factory()
        try:
            service = TipService(
                session,
                settings=settings,
                point_service=PointService(session, settings=settings, notifier=notifier),
            )
            for _ in range(5):
                service.send_tip(sender_id, recipient, 1)
        except Exception as exc:  # pragma: no cover
            errors.append(exc)
        finally:
            session.close()

    threads = [
        threading.Thread(target=tip, args=(alice, "bob")),
        threading.Thread(target=tip, args=(bob, "alice")),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert balance_of(alice) == 100
    assert balance_of(bob) == 100
    assert_ledger_invariant()
