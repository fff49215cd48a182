import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from loyaltyapi.models.base import BaseModel, BigIntPK


class ClaimCodeStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ClaimCode(BaseModel):
    __tablename__ = "claim_codes"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)  # 대문자로 저장
    reward: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ClaimCodeStatus.ACTIVE.value, nullable=False
    )
    expiry_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    max_claims: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 0/NULL = 무제한


class ClaimCodeRedemption(BaseModel):
    __tablename__ = "claim_code_redemptions"
    __table_args__ = (
        UniqueConstraint("code_id", "user_id", name="uq_claim_code_redemption_user"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    code_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("claim_codes.id"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
