import enum
from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from loyaltyapi.models.base import BaseModel, BigIntPK


class LivestreamStatus(str, enum.Enum):
    ACTIVE = "active"
    FINISHED = "finished"


class Livestream(BaseModel):
    """라이브 방송 - 시스템 전체에서 active 행은 최대 1개"""

    __tablename__ = "livestreams"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    youtube_video_id: Mapped[str] = mapped_column(String(64), nullable=False)
    live_chat_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=LivestreamStatus.ACTIVE.value, nullable=False
    )
