"""
태스크 API 라우터

- GET /tasks: active 태스크 목록 (완료 여부 포함)
- POST /tasks/{task_id}/submit: 수동 태스크 증빙 제출
- GET /tasks/{task_id}/verify: 링크 태스크 자동 검증 후 링크로 이동 (307)
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path, status
from fastapi.responses import RedirectResponse

from loyaltyapi.core.auth_middleware import get_current_active_user
from loyaltyapi.deps import get_task_service
from loyaltyapi.core.exceptions import AlreadyCompletedError
from loyaltyapi.schemas.task import ManualProofRequest, TaskCompletionResponse, UserTaskItem
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.services.task_service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=List[UserTaskItem])
def list_tasks(
    current_user: UserSchema = Depends(get_current_active_user),
    task_service: TaskService = Depends(get_task_service),
) -> List[UserTaskItem]:
    return task_service.list_active_tasks(current_user.id)


@router.post(
    "/{task_id}/submit",
    response_model=TaskCompletionResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_manual_proof(
    request: ManualProofRequest,
    task_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_active_user),
    task_service: TaskService = Depends(get_task_service),
) -> TaskCompletionResponse:
    """증빙 제출 - 관리자 승인 전까지 포인트는 지급되지 않음"""
    return task_service.submit_manual_proof(current_user.id, task_id, request.proof)


@router.get("/{task_id}/verify", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
def verify_link_task(
    task_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_active_user),
    task_service: TaskService = Depends(get_task_service),
):
    """
    링크 태스크 - 보상 지급 후 verification_url로 이동

    이미 완료한 태스크라도 링크로는 이동합니다 (추가 지급 없음).
    """
    try:
        redirect_url = task_service.auto_verify_link_task(current_user.id, task_id)
    except AlreadyCompletedError as e:
        logger.info(f"User {current_user.id} re-opened completed link task {task_id}")
        redirect_url = e.redirect_url

    return RedirectResponse(
        url=redirect_url or "/tasks", status_code=status.HTTP_307_TEMPORARY_REDIRECT
    )
