from datetime import datetime
from enum import Enum
from typing import Optional, Union

from sqlalchemy import BigInteger, Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from loyaltyapi.models.base import BaseModel, BigIntPK


class UserRole(str, Enum):
    """사용자 역할 정의"""

    USER = "user"  # 일반 사용자
    ADMIN = "admin"  # 관리자

    @classmethod
    def is_admin(cls, role: Union[str, "UserRole"]) -> bool:
        """관리자 권한 확인"""
        if isinstance(role, cls):
            role = role.value
        return role == cls.ADMIN.value


class User(BaseModel):
    """
    사용자 테이블 - 포인트 잔액의 기준 행

    points 컬럼은 정산 엔진(PointService)만 변경합니다.
    정산 시 이 행에 FOR UPDATE 잠금을 걸어 같은 사용자에 대한 요청을 직렬화합니다.
    사용자는 삭제하지 않고 is_banned 플래그로만 상태를 바꿉니다.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_youtube_channel", "youtube_channel_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )
    password_hash: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True
    )  # NULL for OAuth users
    google_id: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )
    youtube_channel_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    role: Mapped[str] = mapped_column(
        String(20), default=UserRole.USER.value, nullable=False
    )
    points: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # 라이브 채팅 보상 상태
    first_chat_claimed: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    last_point_awarded_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, points={self.points})>"

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(str(self.role))
