from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from loyaltyapi.models.raffle import (
    Raffle as RaffleModel,
    RaffleEntry as RaffleEntryModel,
    RaffleStatus,
)
from loyaltyapi.models.user import User as UserModel
from loyaltyapi.schemas.raffle import (
    RaffleParticipant,
    RaffleResponse,
    RaffleSummary,
    RaffleTicket,
    RaffleWinner,
)
from loyaltyapi.repositories.base import BaseRepository


class RaffleRepository(BaseRepository[RaffleModel, RaffleResponse]):
    """래플 및 티켓 저장소"""

    def __init__(self, db: Session):
        super().__init__(RaffleModel, RaffleResponse, db)

    def lock_current_raffle(self) -> Optional[RaffleModel]:
        """가장 최근에 생성된 active 래플을 FOR UPDATE로 잠금"""
        self._ensure_clean_session()
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.status == RaffleStatus.ACTIVE.value)
            .order_by(self.model_class.created_at.desc(), self.model_class.id.desc())
            .with_for_update()
            .populate_existing()
            .first()
        )

    def lock_raffle(self, raffle_id: int) -> Optional[RaffleModel]:
        self._ensure_clean_session()
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.id == raffle_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )

    def max_ticket_number(self, raffle_id: int) -> int:
        """래플 잠금 이후에만 호출 - 다음 번호 = max + 1"""
        value = (
            self.db.query(func.max(RaffleEntryModel.ticket_number))
            .filter(RaffleEntryModel.raffle_id == raffle_id)
            .scalar()
        )
        return int(value or 0)

    def insert_tickets(
        self, raffle_id: int, user_id: int, first_number: int, count: int
    ) -> List[int]:
        now = datetime.now(timezone.utc)
        numbers = list(range(first_number, first_number + count))
        self.db.add_all(
            [
                RaffleEntryModel(
                    raffle_id=raffle_id,
                    user_id=user_id,
                    ticket_number=number,
                    created_at=now,
                )
                for number in numbers
            ]
        )
        self.db.flush()
        return numbers

    def has_ticket(self, raffle_id: int, user_id: int) -> bool:
        return (
            self.db.query(RaffleEntryModel.id)
            .filter(
                RaffleEntryModel.raffle_id == raffle_id,
                RaffleEntryModel.user_id == user_id,
            )
            .first()
            is not None
        )

    def mark_drawn(
        self, raffle: RaffleModel, winner_id: int, winner_username: str
    ) -> RaffleResponse:
        raffle.status = RaffleStatus.DRAWN.value
        raffle.winner_id = winner_id
        raffle.winner_username = winner_username
        raffle.draw_date = datetime.now(timezone.utc)
        self.db.flush()
        return self._to_schema(raffle)

    def delete_with_entries(self, raffle_id: int) -> bool:
        self.db.query(RaffleEntryModel).filter(
            RaffleEntryModel.raffle_id == raffle_id
        ).delete(synchronize_session=False)
        return self.delete(raffle_id)

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def list_active(self) -> List[RaffleResponse]:
        return self.find_all(filters={"status": RaffleStatus.ACTIVE.value}, order_by="id")

    def list_with_entry_counts(self) -> List[RaffleSummary]:
        self._ensure_clean_session()
        entry_count = func.count(RaffleEntryModel.id)
        rows = (
            self.db.query(self.model_class, entry_count)
            .outerjoin(RaffleEntryModel, RaffleEntryModel.raffle_id == self.model_class.id)
            .group_by(self.model_class.id)
            .order_by(self.model_class.id.desc())
            .all()
        )
        return [
            RaffleSummary(
                **RaffleResponse.model_validate(raffle).model_dump(),
                total_entries=count,
            )
            for raffle, count in rows
        ]

    def list_user_tickets(self, user_id: int) -> List[RaffleTicket]:
        self._ensure_clean_session()
        rows = (
            self.db.query(RaffleEntryModel, self.model_class.title)
            .join(self.model_class, self.model_class.id == RaffleEntryModel.raffle_id)
            .filter(RaffleEntryModel.user_id == user_id)
            .order_by(RaffleEntryModel.raffle_id.desc(), RaffleEntryModel.ticket_number.asc())
            .all()
        )
        return [
            RaffleTicket(
                raffle_id=entry.raffle_id,
                raffle_title=title,
                ticket_number=entry.ticket_number,
                created_at=entry.created_at,
            )
            for entry, title in rows
        ]

    def list_winners(self, limit: int = 20) -> List[RaffleWinner]:
        self._ensure_clean_session()
        rows = (
            self.db.query(self.model_class)
            .filter(
                self.model_class.status == RaffleStatus.DRAWN.value,
                self.model_class.winner_username.isnot(None),
            )
            .order_by(self.model_class.draw_date.desc())
            .limit(limit)
            .all()
        )
        return [
            RaffleWinner(
                raffle_id=row.id,
                reward=row.reward,
                username=row.winner_username,
                draw_date=row.draw_date,
            )
            for row in rows
        ]

    def list_participants(self, raffle_id: int) -> List[RaffleParticipant]:
        self._ensure_clean_session()
        ticket_count = func.count(RaffleEntryModel.id)
        rows = (
            self.db.query(UserModel.id, UserModel.username, UserModel.email, ticket_count)
            .join(RaffleEntryModel, RaffleEntryModel.user_id == UserModel.id)
            .filter(RaffleEntryModel.raffle_id == raffle_id)
            .group_by(UserModel.id, UserModel.username, UserModel.email)
            .order_by(ticket_count.desc(), UserModel.username.asc())
            .all()
        )
        return [
            RaffleParticipant(
                user_id=user_id, username=username, email=email, ticket_count=count
            )
            for user_id, username, email, count in rows
        ]
