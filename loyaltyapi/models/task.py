import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from loyaltyapi.models.base import BaseModel, BigIntPK


class TaskStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TaskType(str, enum.Enum):
    MANUAL = "manual"  # 관리자 검수 후 지급
    LINK_CLICK = "link_click"  # 링크 클릭 시 즉시 지급


class CompletionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Task(BaseModel):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reward: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=TaskStatus.ACTIVE.value, nullable=False
    )
    task_type: Mapped[str] = mapped_column(
        String(20), default=TaskType.MANUAL.value, nullable=False
    )
    verification_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class TaskCompletion(BaseModel):
    """
    사용자별 태스크 수행 기록

    (user, task) 조합당 rejected가 아닌 행은 최대 1개.
    pending -> approved | rejected 로만 전이하며 approved/rejected는 종료 상태.
    """

    __tablename__ = "task_completions"
    __table_args__ = (Index("idx_task_completions_user_task", "user_id", "task_id"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    task_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tasks.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=CompletionStatus.PENDING.value, nullable=False
    )
    proof_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
