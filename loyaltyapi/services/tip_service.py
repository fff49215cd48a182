import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from loyaltyapi.config import Settings, settings as default_settings
from loyaltyapi.core.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    RecipientNotFoundError,
    SelfTipError,
    UserNotFoundError,
)
from loyaltyapi.models.points import LedgerSource
from loyaltyapi.repositories.tip_repository import TipRepository
from loyaltyapi.repositories.user_repository import UserRepository
from loyaltyapi.schemas.tip import TipHistoryItem, TipResponse
from loyaltyapi.services.point_service import PointService

logger = logging.getLogger(__name__)


class TipService:
    """사용자 간 포인트 송금 - 차감/지급/기록이 하나의 정산 단위"""

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        point_service: Optional[PointService] = None,
    ):
        self.db = db
        self.settings = settings or default_settings
        self.user_repo = UserRepository(db)
        self.tip_repo = TipRepository(db)
        self.point_service = point_service or PointService(db, settings=self.settings)

    def send_tip(
        self, sender_id: int, recipient_username: str, amount: int
    ) -> TipResponse:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmountError(details={"amount": amount})

        recipient_username = (recipient_username or "").strip()
        sender = self.user_repo.get_by_id(sender_id)
        if sender is None:
            raise UserNotFoundError(sender_id)
        if sender.username.lower() == recipient_username.lower():
            raise SelfTipError()

        recipient = self.user_repo.get_by_username(recipient_username)
        if recipient is None:
            raise RecipientNotFoundError(recipient_username)

        with self.point_service.settlement():
            locked = self.point_service.points_repo.lock_users([sender_id, recipient.id])
            if locked[sender_id].points < amount:
                raise InsufficientBalanceError(
                    details={"balance": locked[sender_id].points, "required": amount}
                )

            debit = self.point_service.apply_delta(
                sender_id, -amount, f"Tip to {recipient.username}", LedgerSource.TIP
            )
            self.point_service.apply_delta(
                recipient.id, amount, f"Tip from {sender.username}", LedgerSource.TIP
            )
            transfer_id = self.tip_repo.insert_transfer(sender_id, recipient.id, amount)

        logger.info(f"User {sender_id} tipped {amount} points to user {recipient.id}")
        return TipResponse(
            transfer_id=transfer_id,
            recipient_username=recipient.username,
            amount=amount,
            balance_after=debit.balance_after,
            message=f"Sent {amount} points to {recipient.username}",
        )

    def get_tip_history(self, user_id: int, limit: Optional[int] = None) -> List[TipHistoryItem]:
        return self.tip_repo.list_for_user(user_id, limit or self.settings.TIP_HISTORY_LIMIT)
