import threading

import pytest

from loyaltyapi.core.exceptions import (
    AlreadyDrawnError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidWinnerError,
    NoActiveRaffleError,
    RaffleNotFoundError,
)
from loyaltyapi.models.raffle import RaffleEntry, RaffleStatus
from loyaltyapi.providers.queue.events import RaffleCreatedEvent
from loyaltyapi.schemas.raffle import RaffleCreateRequest, RaffleUpdateRequest
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.raffle_service import RaffleService


@pytest.fixture
def raffle_service(db, settings, point_service):
    return RaffleService(db, settings=settings, point_service=point_service)


@pytest.fixture
def create_raffle(raffle_service):
    def _create(title="Monthly giveaway", reward="Gift card"):
        return raffle_service.create_raffle(RaffleCreateRequest(title=title, reward=reward))

    return _create


class TestTicketExchange:
    """포인트 -> 티켓 교환"""

    def test_exchange_issues_consecutive_numbers(
        self, raffle_service, create_user, create_raffle, balance_of, assert_ledger_invariant
    ):
        # Given
        alice = create_user("alice", points=500)
        bob = create_user("bob", points=500)
        raffle = create_raffle()

        # When
        first = raffle_service.exchange_points_for_tickets(alice, 200)
        second = raffle_service.exchange_points_for_tickets(bob, 300)

        # Then
        assert first.raffle_id == raffle.id
        assert first.ticket_numbers == [1, 2]
        assert first.balance_after == 300
        assert second.ticket_numbers == [3, 4, 5]
        assert balance_of(bob) == 200
        assert_ledger_invariant()

    @pytest.mark.parametrize("amount", [0, -100, 150, 99])
    def test_amount_must_be_positive_multiple_of_price(
        self, raffle_service, create_user, create_raffle, amount
    ):
        alice = create_user("alice", points=1000)
        create_raffle()

        with pytest.raises(InvalidAmountError):
            raffle_service.exchange_points_for_tickets(alice, amount)

    def test_insufficient_balance(
        self, raffle_service, db, create_user, create_raffle, balance_of
    ):
        alice = create_user("alice", points=150)
        create_raffle()

        with pytest.raises(InsufficientBalanceError):
            raffle_service.exchange_points_for_tickets(alice, 200)

        assert balance_of(alice) == 150
        assert db.query(RaffleEntry).count() == 0

    def test_no_active_raffle(self, raffle_service, create_user, balance_of):
        alice = create_user("alice", points=1000)

        with pytest.raises(NoActiveRaffleError):
            raffle_service.exchange_points_for_tickets(alice, 100)

        assert balance_of(alice) == 1000

    def test_tickets_go_to_most_recent_active_raffle(
        self, raffle_service, create_user, create_raffle
    ):
        alice = create_user("alice", points=1000)
        create_raffle(title="Older")
        newer = create_raffle(title="Newer")

        result = raffle_service.exchange_points_for_tickets(alice, 100)

        assert result.raffle_id == newer.id

    def test_concurrent_exchanges_get_distinct_numbers(
        self, db, session_factory, settings, notifier, create_user, create_raffle,
        assert_ledger_invariant,
    ):
        """두 사용자가 동시에 200씩 교환해도 번호는 {1, 2, 3, 4}"""
        alice = create_user("alice", points=200)
        bob = create_user("bob", points=200)
        raffle = create_raffle()
        db.rollback()
        results, errors = [], []

        def exchange(user_id):
            session = session_factory()
            try:
                service = RaffleService(
                    session,
                    settings=settings,
                    point_service=PointService(session, settings=settings, notifier=notifier),
                )
                results.append(service.exchange_points_for_tickets(user_id, 200))
            except Exception as exc:  # pragma: no cover
                errors.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=exchange, args=(uid,)) for uid in (alice, bob)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        numbers = sorted(n for r in results for n in r.ticket_numbers)
        assert numbers == [1, 2, 3, 4]
        assert all(r.raffle_id == raffle.id for r in results)
        assert_ledger_invariant()


class TestWinnerAssignment:
    def test_assign_winner(self, raffle_service, create_user, create_raffle):
        alice = create_user("alice", points=100)
        raffle = create_raffle()
        raffle_service.exchange_points_for_tickets(alice, 100)

        drawn = raffle_service.assign_raffle_winner(raffle.id, alice)

        assert drawn.status == RaffleStatus.DRAWN.value
        assert drawn.winner_id == alice
        assert drawn.winner_username == "alice"
        assert drawn.draw_date is not None
        assert [w.username for w in raffle_service.list_winners()] == ["alice"]

    def test_second_assignment_is_already_drawn(
        self, raffle_service, create_user, create_raffle
    ):
        alice = create_user("alice", points=100)
        raffle = create_raffle()
        raffle_service.exchange_points_for_tickets(alice, 100)
        raffle_service.assign_raffle_winner(raffle.id, alice)

        with pytest.raises(AlreadyDrawnError):
            raffle_service.assign_raffle_winner(raffle.id, alice)

    def test_winner_must_hold_a_ticket(self, raffle_service, create_user, create_raffle):
        outsider = create_user("outsider")
        raffle = create_raffle()

        with pytest.raises(InvalidWinnerError):
            raffle_service.assign_raffle_winner(raffle.id, outsider)

    def test_unknown_raffle(self, raffle_service, create_user):
        with pytest.raises(RaffleNotFoundError):
            raffle_service.assign_raffle_winner(4040, create_user("alice"))

    def test_drawn_raffle_no_longer_accepts_tickets(
        self, raffle_service, create_user, create_raffle
    ):
        alice = create_user("alice", points=300)
        raffle = create_raffle()
        raffle_service.exchange_points_for_tickets(alice, 100)
        raffle_service.assign_raffle_winner(raffle.id, alice)

        with pytest.raises(NoActiveRaffleError):
            raffle_service.exchange_points_for_tickets(alice, 100)


class TestRaffleQueries:
    def test_create_publishes_event(self, raffle_service, notifier, create_raffle):
        raffle = create_raffle(title="Launch")

        event = notifier.publish.call_args.args[0]
        assert isinstance(event, RaffleCreatedEvent)
        assert event.raffle_id == raffle.id

    def test_overview_and_participants(self, raffle_service, create_user, create_raffle):
        alice = create_user("alice", points=300)
        bob = create_user("bob", points=100)
        raffle = create_raffle()
        raffle_service.exchange_points_for_tickets(alice, 200)
        raffle_service.exchange_points_for_tickets(bob, 100)

        overview = raffle_service.get_overview(alice)
        participants = raffle_service.list_raffle_participants(raffle.id)
        summaries = raffle_service.list_raffles_with_entry_counts()

        assert [t.ticket_number for t in overview.my_tickets] == [1, 2]
        assert [(p.username, p.ticket_count) for p in participants] == [("alice", 2), ("bob", 1)]
        assert summaries[0].total_entries == 3

    def test_update_and_delete(self, raffle_service, create_user, create_raffle, balance_of):
        alice = create_user("alice", points=100)
        raffle = create_raffle()
        raffle_service.exchange_points_for_tickets(alice, 100)

        updated = raffle_service.update_raffle(
            raffle.id, RaffleUpdateRequest(title="Renamed", reward="Console")
        )
        assert updated.title == "Renamed"

        assert raffle_service.delete_raffle(raffle.id) is True
        # 티켓을 지운다고 포인트가 환불되지는 않음
        assert balance_of(alice) == 0
        with pytest.raises(RaffleNotFoundError):
            raffle_service.list_raffle_participants(raffle.id)
