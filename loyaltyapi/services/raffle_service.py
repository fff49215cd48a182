import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from loyaltyapi.config import Settings, settings as default_settings
from loyaltyapi.core.exceptions import (
    AlreadyDrawnError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidWinnerError,
    NoActiveRaffleError,
    RaffleNotFoundError,
)
from loyaltyapi.models.points import LedgerSource
from loyaltyapi.models.raffle import RaffleStatus
from loyaltyapi.providers.queue.events import RaffleCreatedEvent
from loyaltyapi.repositories.raffle_repository import RaffleRepository
from loyaltyapi.repositories.user_repository import UserRepository
from loyaltyapi.schemas.raffle import (
    RaffleCreateRequest,
    RaffleOverviewResponse,
    RaffleParticipant,
    RaffleResponse,
    RaffleSummary,
    RaffleTicket,
    RaffleUpdateRequest,
    RaffleWinner,
    TicketExchangeResponse,
)
from loyaltyapi.services.point_service import PointService

logger = logging.getLogger(__name__)


class RaffleService:
    """
    래플 - 포인트를 티켓으로 교환하고 관리자가 당첨자를 지정

    티켓 번호는 래플 행 잠금 하에서 max(ticket_number) + 1 부터 연속 발급되며
    (raffle_id, ticket_number) 유니크 제약이 중복을 막습니다.
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        point_service: Optional[PointService] = None,
    ):
        self.db = db
        self.settings = settings or default_settings
        self.raffle_repo = RaffleRepository(db)
        self.user_repo = UserRepository(db)
        self.point_service = point_service or PointService(db, settings=self.settings)

    def exchange_points_for_tickets(self, user_id: int, amount: int) -> TicketExchangeResponse:
        price = self.settings.TICKET_PRICE_POINTS
        if (
            isinstance(amount, bool)
            or not isinstance(amount, int)
            or amount <= 0
            or amount % price != 0
        ):
            raise InvalidAmountError(
                f"Amount must be a positive multiple of {price}",
                {"amount": amount, "ticket_price": price},
            )
        ticket_count = amount // price

        with self.point_service.settlement():
            # 잠금 순서: 사용자 -> 래플
            user = self.point_service.points_repo.lock_user(user_id)
            if user.points < amount:
                raise InsufficientBalanceError(
                    details={"balance": user.points, "required": amount}
                )

            raffle = self.raffle_repo.lock_current_raffle()
            if raffle is None:
                raise NoActiveRaffleError()

            entry = self.point_service.apply_delta(
                user_id,
                -amount,
                f"Raffle tickets x{ticket_count}: {raffle.title}",
                LedgerSource.RAFFLE,
            )
            first_number = self.raffle_repo.max_ticket_number(raffle.id) + 1
            numbers = self.raffle_repo.insert_tickets(
                raffle.id, user_id, first_number, ticket_count
            )
            raffle_id = raffle.id

        logger.info(
            f"User {user_id} exchanged {amount} points for tickets {numbers} in raffle {raffle_id}"
        )
        return TicketExchangeResponse(
            raffle_id=raffle_id,
            points_spent=amount,
            ticket_numbers=numbers,
            balance_after=entry.balance_after,
        )

    def assign_raffle_winner(self, raffle_id: int, user_id: int) -> RaffleResponse:
        with self.point_service.settlement():
            raffle = self.raffle_repo.lock_raffle(raffle_id)
            if raffle is None:
                raise RaffleNotFoundError(raffle_id)
            if raffle.status == RaffleStatus.DRAWN.value:
                raise AlreadyDrawnError(details={"raffle_id": raffle_id})

            winner = self.user_repo.get_by_id(user_id)
            if winner is None or not self.raffle_repo.has_ticket(raffle_id, user_id):
                raise InvalidWinnerError(details={"raffle_id": raffle_id, "user_id": user_id})

            result = self.raffle_repo.mark_drawn(raffle, winner.id, winner.username)

        logger.info(f"Raffle {raffle_id} drawn: winner user {user_id}")
        return result

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def list_active_raffles(self) -> List[RaffleResponse]:
        return self.raffle_repo.list_active()

    def get_user_tickets(self, user_id: int) -> List[RaffleTicket]:
        return self.raffle_repo.list_user_tickets(user_id)

    def list_winners(self, limit: int = 20) -> List[RaffleWinner]:
        return self.raffle_repo.list_winners(limit)

    def get_overview(self, user_id: int) -> RaffleOverviewResponse:
        """래플 화면 - active 래플, 내 티켓, 최근 당첨자"""
        return RaffleOverviewResponse(
            raffles=self.list_active_raffles(),
            my_tickets=self.get_user_tickets(user_id),
            winners=self.list_winners(),
        )

    def list_raffles_with_entry_counts(self) -> List[RaffleSummary]:
        return self.raffle_repo.list_with_entry_counts()

    def list_raffle_participants(self, raffle_id: int) -> List[RaffleParticipant]:
        if self.raffle_repo.get_by_id(raffle_id) is None:
            raise RaffleNotFoundError(raffle_id)
        return self.raffle_repo.list_participants(raffle_id)

    # ------------------------------------------------------------------
    # 관리자 CRUD
    # ------------------------------------------------------------------

    def create_raffle(self, request: RaffleCreateRequest) -> RaffleResponse:
        raffle = self.raffle_repo.create(
            commit=True,
            title=request.title,
            reward=request.reward,
            status=request.status.value,
            draw_date=request.draw_date,
        )
        self.point_service.notifier.publish(
            RaffleCreatedEvent(raffle_id=raffle.id, title=raffle.title)
        )
        logger.info(f"Created raffle {raffle.id}: {raffle.title}")
        return raffle

    def update_raffle(self, raffle_id: int, request: RaffleUpdateRequest) -> RaffleResponse:
        raffle = self.raffle_repo.update(raffle_id, commit=True, **request.model_dump())
        if raffle is None:
            raise RaffleNotFoundError(raffle_id)
        return raffle

    def delete_raffle(self, raffle_id: int) -> bool:
        with self.point_service.settlement():
            if not self.raffle_repo.delete_with_entries(raffle_id):
                raise RaffleNotFoundError(raffle_id)
        logger.info(f"Deleted raffle {raffle_id}")
        return True
