from sqlalchemy import BigInteger, CheckConstraint, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from loyaltyapi.models.base import BaseModel, BigIntPK


class TipTransfer(BaseModel):
    """사용자 간 포인트 송금 기록"""

    __tablename__ = "tip_history"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_tip_amount_positive"),
        CheckConstraint("sender_id <> recipient_id", name="ck_tip_not_self"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    recipient_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
