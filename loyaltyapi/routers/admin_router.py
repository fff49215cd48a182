"""
관리자 API 라우터 (모든 엔드포인트 admin 권한 필요)

- GET  /admin/dashboard: 통계 + 최근 활동
- 사용자: GET /admin/users, POST /admin/users/{id}/ban, POST /admin/users/{id}/points
- 정합성: GET /admin/points/integrity[/{user_id}]
- 지갑: GET /admin/wallets
- 태스크: /admin/tasks CRUD, /admin/verifications 검수
- 클레임 코드: /admin/claim-codes
- 래플: /admin/raffles CRUD, 참가자, 당첨자 지정
"""

from typing import List

from fastapi import APIRouter, Depends, Path, Query, status

from loyaltyapi.core.auth_middleware import require_admin
from loyaltyapi.deps import (
    get_admin_service,
    get_claim_code_service,
    get_point_service,
    get_raffle_service,
    get_task_service,
    get_user_service,
    get_wallet_service,
)
from loyaltyapi.schemas.admin import AdminDashboardResponse
from loyaltyapi.schemas.claim_code import ClaimCodeCreateRequest, ClaimCodeResponse
from loyaltyapi.schemas.points import (
    AdminPointsAdjustmentRequest,
    PointsIntegrityCheckResponse,
    PointsTransactionResponse,
)
from loyaltyapi.schemas.raffle import (
    RaffleCreateRequest,
    RaffleParticipant,
    RaffleResponse,
    RaffleSummary,
    RaffleUpdateRequest,
    WinnerAssignRequest,
)
from loyaltyapi.schemas.task import (
    PendingCompletionItem,
    TaskCompletionResponse,
    TaskCreateRequest,
    TaskResponse,
    TaskUpdateRequest,
)
from loyaltyapi.schemas.user import BanRequest, User as UserSchema, UserListResponse
from loyaltyapi.schemas.wallet import AdminWalletItem
from loyaltyapi.services.admin_service import AdminService
from loyaltyapi.services.claim_code_service import ClaimCodeService
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.raffle_service import RaffleService
from loyaltyapi.services.task_service import TaskService
from loyaltyapi.services.user_service import UserService
from loyaltyapi.services.wallet_service import WalletService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard", response_model=AdminDashboardResponse)
def get_dashboard(
    _: UserSchema = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> AdminDashboardResponse:
    return admin_service.get_dashboard_stats()


# ============================================================================
# 사용자 / 포인트
# ============================================================================


@router.get("/users", response_model=UserListResponse)
def list_users(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    _: UserSchema = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserListResponse:
    return user_service.list_users(limit=limit, offset=offset)


@router.post("/users/{user_id}/ban", response_model=UserSchema)
def set_user_ban(
    request: BanRequest,
    user_id: int = Path(..., gt=0),
    _: UserSchema = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserSchema:
    return user_service.set_ban(user_id, request.banned)


@router.post("/users/{user_id}/points", response_model=PointsTransactionResponse)
def adjust_user_points(
    request: AdminPointsAdjustmentRequest,
    user_id: int = Path(..., gt=0),
    admin: UserSchema = Depends(require_admin),
    point_service: PointService = Depends(get_point_service),
) -> PointsTransactionResponse:
    """
    관리자 포인트 지급/차감 (원장에 admin 출처로 기록)

    HTTP Status:
        200: 정산 완료
        400: 잔액 부족 (차감 시)
        404: 사용자 없음
    """
    return point_service.admin_adjust_points(admin.id, user_id, request)


@router.get("/points/integrity", response_model=PointsIntegrityCheckResponse)
def verify_global_integrity(
    _: UserSchema = Depends(require_admin),
    point_service: PointService = Depends(get_point_service),
) -> PointsIntegrityCheckResponse:
    return point_service.verify_global_integrity()


@router.get("/points/integrity/{user_id}", response_model=PointsIntegrityCheckResponse)
def verify_user_integrity(
    user_id: int = Path(..., gt=0),
    _: UserSchema = Depends(require_admin),
    point_service: PointService = Depends(get_point_service),
) -> PointsIntegrityCheckResponse:
    return point_service.verify_user_integrity(user_id)


@router.get("/wallets", response_model=List[AdminWalletItem])
def list_wallets(
    _: UserSchema = Depends(require_admin),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> List[AdminWalletItem]:
    return wallet_service.list_all_wallets()


# ============================================================================
# 태스크 / 검수
# ============================================================================


@router.get("/tasks", response_model=List[TaskResponse])
def list_tasks(
    _: UserSchema = Depends(require_admin),
    task_service: TaskService = Depends(get_task_service),
) -> List[TaskResponse]:
    return task_service.list_tasks()


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    request: TaskCreateRequest,
    _: UserSchema = Depends(require_admin),
    task_service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    return task_service.create_task(request)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    request: TaskUpdateRequest,
    task_id: int = Path(..., gt=0),
    _: UserSchema = Depends(require_admin),
    task_service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    return task_service.update_task(task_id, request)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int = Path(..., gt=0),
    _: UserSchema = Depends(require_admin),
    task_service: TaskService = Depends(get_task_service),
) -> None:
    task_service.delete_task(task_id)


@router.get("/verifications", response_model=List[PendingCompletionItem])
def list_pending_verifications(
    _: UserSchema = Depends(require_admin),
    task_service: TaskService = Depends(get_task_service),
) -> List[PendingCompletionItem]:
    """검수 대기 목록 (오래된 순)"""
    return task_service.list_pending_completions()


@router.post("/verifications/{completion_id}/approve", response_model=TaskCompletionResponse)
def approve_verification(
    completion_id: int = Path(..., gt=0),
    admin: UserSchema = Depends(require_admin),
    task_service: TaskService = Depends(get_task_service),
) -> TaskCompletionResponse:
    """pending 제출 승인 + 보상 지급 (이미 처리된 제출은 409)"""
    return task_service.approve_completion(completion_id, admin.id)


@router.post("/verifications/{completion_id}/reject", response_model=TaskCompletionResponse)
def reject_verification(
    completion_id: int = Path(..., gt=0),
    admin: UserSchema = Depends(require_admin),
    task_service: TaskService = Depends(get_task_service),
) -> TaskCompletionResponse:
    return task_service.reject_completion(completion_id, admin.id)


# ============================================================================
# 클레임 코드
# ============================================================================


@router.get("/claim-codes", response_model=List[ClaimCodeResponse])
def list_claim_codes(
    _: UserSchema = Depends(require_admin),
    claim_code_service: ClaimCodeService = Depends(get_claim_code_service),
) -> List[ClaimCodeResponse]:
    return claim_code_service.list_claim_codes()


@router.post(
    "/claim-codes", response_model=ClaimCodeResponse, status_code=status.HTTP_201_CREATED
)
def create_claim_code(
    request: ClaimCodeCreateRequest,
    _: UserSchema = Depends(require_admin),
    claim_code_service: ClaimCodeService = Depends(get_claim_code_service),
) -> ClaimCodeResponse:
    return claim_code_service.create_claim_code(request)


@router.delete("/claim-codes/{code_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_claim_code(
    code_id: int = Path(..., gt=0),
    _: UserSchema = Depends(require_admin),
    claim_code_service: ClaimCodeService = Depends(get_claim_code_service),
) -> None:
    claim_code_service.delete_claim_code(code_id)


# ============================================================================
# 래플
# ============================================================================


@router.get("/raffles", response_model=List[RaffleSummary])
def list_raffles(
    _: UserSchema = Depends(require_admin),
    raffle_service: RaffleService = Depends(get_raffle_service),
) -> List[RaffleSummary]:
    return raffle_service.list_raffles_with_entry_counts()


@router.post("/raffles", response_model=RaffleResponse, status_code=status.HTTP_201_CREATED)
def create_raffle(
    request: RaffleCreateRequest,
    _: UserSchema = Depends(require_admin),
    raffle_service: RaffleService = Depends(get_raffle_service),
) -> RaffleResponse:
    return raffle_service.create_raffle(request)


@router.put("/raffles/{raffle_id}", response_model=RaffleResponse)
def update_raffle(
    request: RaffleUpdateRequest,
    raffle_id: int = Path(..., gt=0),
    _: UserSchema = Depends(require_admin),
    raffle_service: RaffleService = Depends(get_raffle_service),
) -> RaffleResponse:
    return raffle_service.update_raffle(raffle_id, request)


@router.delete("/raffles/{raffle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_raffle(
    raffle_id: int = Path(..., gt=0),
    _: UserSchema = Depends(require_admin),
    raffle_service: RaffleService = Depends(get_raffle_service),
) -> None:
    raffle_service.delete_raffle(raffle_id)


@router.get("/raffles/{raffle_id}/participants", response_model=List[RaffleParticipant])
def list_raffle_participants(
    raffle_id: int = Path(..., gt=0),
    _: UserSchema = Depends(require_admin),
    raffle_service: RaffleService = Depends(get_raffle_service),
) -> List[RaffleParticipant]:
    return raffle_service.list_raffle_participants(raffle_id)


@router.post("/raffles/{raffle_id}/winner", response_model=RaffleResponse)
def assign_winner(
    request: WinnerAssignRequest,
    raffle_id: int = Path(..., gt=0),
    _: UserSchema = Depends(require_admin),
    raffle_service: RaffleService = Depends(get_raffle_service),
) -> RaffleResponse:
    """당첨자 지정 - 해당 래플 티켓 보유자만 가능, 한 번만"""
    return raffle_service.assign_raffle_winner(raffle_id, request.user_id)
