from sqlalchemy import BigInteger, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from loyaltyapi.models.base import BaseModel, BigIntPK


class UserWallet(BaseModel):
    """통화별 지갑 잔액 - 포인트와 별개이며 상호 전환 경로가 없음"""

    __tablename__ = "users_wallet"
    __table_args__ = (
        UniqueConstraint("user_id", "currency", name="uq_users_wallet_currency"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    currency: Mapped[str] = mapped_column(String(10), nullable=False)
    balance: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
