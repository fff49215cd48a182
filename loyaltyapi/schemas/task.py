from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from loyaltyapi.models.task import TaskStatus, TaskType


class TaskCreateRequest(BaseModel):
    """관리자 태스크 생성 요청"""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    reward: int = Field(..., gt=0, description="지급 포인트")
    status: TaskStatus = TaskStatus.ACTIVE
    task_type: TaskType = TaskType.MANUAL
    verification_url: Optional[str] = None


class TaskUpdateRequest(TaskCreateRequest):
    pass


class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    reward: int
    status: str
    task_type: str
    verification_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserTaskItem(TaskResponse):
    """사용자 태스크 목록 항목 (제출/완료 여부 포함)"""

    is_completed: bool = False


class ManualProofRequest(BaseModel):
    proof: Optional[str] = Field(None, max_length=2000, description="수행 증빙")


class TaskCompletionResponse(BaseModel):
    id: int
    user_id: int
    task_id: int
    status: str
    proof_data: Optional[str] = None
    completed_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PendingCompletionItem(BaseModel):
    """관리자 검수 대기 목록 항목"""

    id: int
    username: str
    task_title: str
    proof_data: Optional[str] = None
    completed_at: Optional[datetime] = None
