from datetime import datetime, timezone
from typing import List
from sqlalchemy import or_
from sqlalchemy.orm import Session, aliased

from loyaltyapi.models.tip import TipTransfer as TipTransferModel
from loyaltyapi.models.user import User as UserModel
from loyaltyapi.schemas.tip import TipHistoryItem
from loyaltyapi.repositories.base import BaseRepository


class TipRepository(BaseRepository[TipTransferModel, TipHistoryItem]):
    def __init__(self, db: Session):
        super().__init__(TipTransferModel, TipHistoryItem, db)

    def insert_transfer(self, sender_id: int, recipient_id: int, amount: int) -> int:
        transfer = self.model_class(
            sender_id=sender_id,
            recipient_id=recipient_id,
            amount=amount,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(transfer)
        self.db.flush()
        return transfer.id

    def list_for_user(self, user_id: int, limit: int = 20) -> List[TipHistoryItem]:
        """보낸/받은 송금 내역 - 최신순"""
        self._ensure_clean_session()
        sender = aliased(UserModel)
        recipient = aliased(UserModel)
        rows = (
            self.db.query(self.model_class, sender.username, recipient.username)
            .join(sender, sender.id == self.model_class.sender_id)
            .join(recipient, recipient.id == self.model_class.recipient_id)
            .filter(
                or_(
                    self.model_class.sender_id == user_id,
                    self.model_class.recipient_id == user_id,
                )
            )
            .order_by(self.model_class.created_at.desc(), self.model_class.id.desc())
            .limit(limit)
            .all()
        )
        return [
            TipHistoryItem(
                id=transfer.id,
                sender_id=transfer.sender_id,
                sender_username=sender_name,
                recipient_id=transfer.recipient_id,
                recipient_username=recipient_name,
                amount=transfer.amount,
                created_at=transfer.created_at,
            )
            for transfer, sender_name, recipient_name in rows
        ]
