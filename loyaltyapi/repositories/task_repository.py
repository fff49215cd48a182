from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.orm import Session

from loyaltyapi.models.task import (
    CompletionStatus,
    Task as TaskModel,
    TaskCompletion as TaskCompletionModel,
    TaskStatus,
)
from loyaltyapi.models.user import User as UserModel
from loyaltyapi.schemas.task import (
    PendingCompletionItem,
    TaskCompletionResponse,
    TaskResponse,
    UserTaskItem,
)
from loyaltyapi.repositories.base import BaseRepository


class TaskRepository(BaseRepository[TaskModel, TaskResponse]):
    def __init__(self, db: Session):
        super().__init__(TaskModel, TaskResponse, db)

    def list_tasks(self) -> List[TaskResponse]:
        self._ensure_clean_session()
        rows = self.db.query(self.model_class).order_by(self.model_class.id.desc()).all()
        return [self._to_schema(row) for row in rows]

    def list_active_for_user(self, user_id: int) -> List[UserTaskItem]:
        """active 태스크 + 사용자의 pending/approved 제출 여부"""
        self._ensure_clean_session()
        done_task_ids = {
            task_id
            for (task_id,) in self.db.query(TaskCompletionModel.task_id)
            .filter(
                TaskCompletionModel.user_id == user_id,
                TaskCompletionModel.status.in_(
                    [CompletionStatus.PENDING.value, CompletionStatus.APPROVED.value]
                ),
            )
            .all()
        }
        rows = (
            self.db.query(self.model_class)
            .filter(self.model_class.status == TaskStatus.ACTIVE.value)
            .order_by(self.model_class.id.desc())
            .all()
        )
        return [
            UserTaskItem(
                **TaskResponse.model_validate(row).model_dump(),
                is_completed=row.id in done_task_ids,
            )
            for row in rows
        ]

    def delete_with_completions(self, task_id: int) -> bool:
        self.db.query(TaskCompletionModel).filter(
            TaskCompletionModel.task_id == task_id
        ).delete(synchronize_session=False)
        return self.delete(task_id)


class TaskCompletionRepository(
    BaseRepository[TaskCompletionModel, TaskCompletionResponse]
):
    """태스크 수행 기록 - pending -> approved | rejected"""

    def __init__(self, db: Session):
        super().__init__(TaskCompletionModel, TaskCompletionResponse, db)

    def find_open_completion(
        self, user_id: int, task_id: int, statuses: List[str]
    ) -> Optional[TaskCompletionResponse]:
        self._ensure_clean_session()
        row = (
            self.db.query(self.model_class)
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.task_id == task_id,
                self.model_class.status.in_(statuses),
            )
            .first()
        )
        return self._to_schema(row)

    def insert_completion(
        self,
        user_id: int,
        task_id: int,
        status: CompletionStatus,
        proof_data: Optional[str] = None,
    ) -> TaskCompletionResponse:
        now = datetime.now(timezone.utc)
        return self.create(
            user_id=user_id,
            task_id=task_id,
            status=status.value,
            proof_data=proof_data,
            completed_at=now,
            processed_at=now if status != CompletionStatus.PENDING else None,
            created_at=now,
        )

    def lock_completion(self, completion_id: int) -> Optional[TaskCompletionModel]:
        """검수 대상 행을 FOR UPDATE로 잠금"""
        self._ensure_clean_session()
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.id == completion_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )

    def mark_processed(
        self, completion: TaskCompletionModel, status: CompletionStatus
    ) -> TaskCompletionResponse:
        completion.status = status.value
        completion.processed_at = datetime.now(timezone.utc)
        self.db.flush()
        return self._to_schema(completion)

    def list_pending(self) -> List[PendingCompletionItem]:
        """검수 대기 목록 - 오래된 순"""
        self._ensure_clean_session()
        rows = (
            self.db.query(self.model_class, UserModel.username, TaskModel.title)
            .join(UserModel, UserModel.id == self.model_class.user_id)
            .join(TaskModel, TaskModel.id == self.model_class.task_id)
            .filter(self.model_class.status == CompletionStatus.PENDING.value)
            .order_by(self.model_class.completed_at.asc(), self.model_class.id.asc())
            .all()
        )
        return [
            PendingCompletionItem(
                id=completion.id,
                username=username,
                task_title=title,
                proof_data=completion.proof_data,
                completed_at=completion.completed_at,
            )
            for completion, username, title in rows
        ]
