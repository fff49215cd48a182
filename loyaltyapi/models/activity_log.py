from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from loyaltyapi.models.base import BaseModel, BigIntPK


class ActivityLog(BaseModel):
    """관리자 대시보드용 감사 로그"""

    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
