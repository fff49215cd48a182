import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from loyaltyapi.models.base import BaseModel, BigIntPK


class RaffleStatus(str, enum.Enum):
    ACTIVE = "active"
    DRAWN = "drawn"


class Raffle(BaseModel):
    """래플 - active -> drawn 전이는 당첨자 지정 시 단 한 번"""

    __tablename__ = "raffles"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    reward: Mapped[str] = mapped_column(Text, nullable=False)  # 상품 설명
    status: Mapped[str] = mapped_column(
        String(20), default=RaffleStatus.ACTIVE.value, nullable=False
    )
    draw_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    winner_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True
    )
    winner_username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class RaffleEntry(BaseModel):
    """래플 티켓 - 래플 내에서 1부터 빈틈없이 증가하는 번호"""

    __tablename__ = "raffle_entries"
    __table_args__ = (
        UniqueConstraint("raffle_id", "ticket_number", name="uq_raffle_ticket_number"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    raffle_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("raffles.id"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    ticket_number: Mapped[int] = mapped_column(Integer, nullable=False)
