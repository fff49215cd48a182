import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from loyaltyapi.config import Settings
from loyaltyapi.core.exceptions import (
    AlreadyCompletedError,
    AlreadyProcessedError,
    AlreadySubmittedError,
    CompletionNotFoundError,
    TaskNotEligibleError,
    TaskNotFoundError,
    WrongTaskTypeError,
)
from loyaltyapi.models.points import LedgerSource
from loyaltyapi.models.task import CompletionStatus, TaskStatus, TaskType
from loyaltyapi.repositories.activity_log_repository import ActivityLogRepository
from loyaltyapi.repositories.task_repository import (
    TaskCompletionRepository,
    TaskRepository,
)
from loyaltyapi.schemas.task import (
    PendingCompletionItem,
    TaskCompletionResponse,
    TaskCreateRequest,
    TaskResponse,
    TaskUpdateRequest,
    UserTaskItem,
)
from loyaltyapi.services.point_service import PointService

logger = logging.getLogger(__name__)

OPEN_STATUSES = [CompletionStatus.PENDING.value, CompletionStatus.APPROVED.value]


class TaskService:
    """
    태스크 보상 출처

    - manual: 증빙 제출 -> 관리자 승인 시 지급
    - link_click: 링크 클릭 즉시 지급 (사용자당 1회)
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        point_service: Optional[PointService] = None,
    ):
        self.db = db
        self.task_repo = TaskRepository(db)
        self.completion_repo = TaskCompletionRepository(db)
        self.activity_repo = ActivityLogRepository(db)
        self.point_service = point_service or PointService(db, settings=settings)

    # ------------------------------------------------------------------
    # 사용자
    # ------------------------------------------------------------------

    def list_active_tasks(self, user_id: int) -> List[UserTaskItem]:
        return self.task_repo.list_active_for_user(user_id)

    def submit_manual_proof(
        self, user_id: int, task_id: int, proof: Optional[str]
    ) -> TaskCompletionResponse:
        """증빙 제출 - pending 완료 기록만 생성 (지급 없음)"""
        with self.point_service.settlement():
            # 같은 사용자의 동시 제출을 직렬화
            self.point_service.points_repo.lock_user(user_id)

            task = self.task_repo.get_by_id(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            if task.task_type != TaskType.MANUAL.value:
                raise WrongTaskTypeError(details={"task_id": task_id, "task_type": task.task_type})

            if self.completion_repo.find_open_completion(user_id, task_id, OPEN_STATUSES):
                raise AlreadySubmittedError(details={"task_id": task_id})

            completion = self.completion_repo.insert_completion(
                user_id=user_id,
                task_id=task_id,
                status=CompletionStatus.PENDING,
                proof_data=(proof or "").strip() or None,
            )

        logger.info(f"User {user_id} submitted proof for task {task_id}")
        return completion

    def auto_verify_link_task(self, user_id: int, task_id: int) -> Optional[str]:
        """
        링크 태스크 자동 검증 - 승인 기록과 보상을 한 단위로 커밋하고 이동할 URL 반환

        Raises:
            TaskNotEligibleError: 태스크가 없거나 비활성 또는 link_click이 아님
            AlreadyCompletedError: 이미 승인됨 (redirect_url 포함, 호출 측은 그대로 이동)
        """
        with self.point_service.settlement():
            self.point_service.points_repo.lock_user(user_id)

            task = self.task_repo.get_by_id(task_id)
            if (
                task is None
                or task.status != TaskStatus.ACTIVE.value
                or task.task_type != TaskType.LINK_CLICK.value
            ):
                raise TaskNotEligibleError(details={"task_id": task_id})

            if self.completion_repo.find_open_completion(
                user_id, task_id, [CompletionStatus.APPROVED.value]
            ):
                raise AlreadyCompletedError(task.verification_url)

            self.completion_repo.insert_completion(
                user_id=user_id, task_id=task_id, status=CompletionStatus.APPROVED
            )
            self.point_service.apply_delta(
                user_id, task.reward, f"Task: {task.title}", LedgerSource.TASK
            )

        logger.info(f"User {user_id} auto-verified link task {task_id} (+{task.reward})")
        return task.verification_url

    # ------------------------------------------------------------------
    # 관리자 검수
    # ------------------------------------------------------------------

    def list_pending_completions(self) -> List[PendingCompletionItem]:
        return self.completion_repo.list_pending()

    def _lock_pending(self, completion_id: int):
        completion = self.completion_repo.lock_completion(completion_id)
        if completion is None:
            raise CompletionNotFoundError(completion_id)
        if completion.status != CompletionStatus.PENDING.value:
            raise AlreadyProcessedError(
                details={"completion_id": completion_id, "status": completion.status}
            )
        return completion

    def approve_completion(self, completion_id: int, admin_id: int) -> TaskCompletionResponse:
        """pending -> approved, 태스크 보상 지급 + 감사 로그"""
        with self.point_service.settlement():
            completion = self._lock_pending(completion_id)
            task = self.task_repo.get_by_id(completion.task_id)
            if task is None:
                raise TaskNotFoundError(completion.task_id)

            self.point_service.apply_delta(
                completion.user_id, task.reward, f"Task: {task.title}", LedgerSource.TASK
            )
            result = self.completion_repo.mark_processed(completion, CompletionStatus.APPROVED)
            self.activity_repo.append(
                f"Admin {admin_id} approved task '{task.title}' for user {completion.user_id}"
            )

        logger.info(f"Admin {admin_id} approved completion {completion_id}")
        return result

    def reject_completion(self, completion_id: int, admin_id: int) -> TaskCompletionResponse:
        """pending -> rejected (지급 없음)"""
        with self.point_service.settlement():
            completion = self._lock_pending(completion_id)
            result = self.completion_repo.mark_processed(completion, CompletionStatus.REJECTED)

        logger.info(f"Admin {admin_id} rejected completion {completion_id}")
        return result

    # ------------------------------------------------------------------
    # 관리자 CRUD
    # ------------------------------------------------------------------

    def list_tasks(self) -> List[TaskResponse]:
        return self.task_repo.list_tasks()

    def get_task(self, task_id: int) -> TaskResponse:
        task = self.task_repo.get_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def create_task(self, request: TaskCreateRequest) -> TaskResponse:
        task = self.task_repo.create(commit=True, **request.model_dump(mode="json"))
        logger.info(f"Created task {task.id}: {task.title}")
        return task

    def update_task(self, task_id: int, request: TaskUpdateRequest) -> TaskResponse:
        task = self.task_repo.update(task_id, commit=True, **request.model_dump(mode="json"))
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def delete_task(self, task_id: int) -> bool:
        """태스크와 수행 기록을 한 트랜잭션에서 삭제 (지급된 원장은 유지)"""
        with self.point_service.settlement():
            if not self.task_repo.delete_with_completions(task_id):
                raise TaskNotFoundError(task_id)
        logger.info(f"Deleted task {task_id}")
        return True
