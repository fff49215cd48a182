"""
포인트 API 라우터

사용자용 엔드포인트:
- GET /points/balance: 내 포인트 잔액
- GET /points/ledger: 내 포인트 원장 (최신순, 페이징)
- GET /points/recent: 최근 원장 5건
- GET /points/integrity/my: 내 원장 정합성 검증
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from loyaltyapi.core.auth_middleware import get_current_active_user
from loyaltyapi.deps import get_history_service, get_point_service
from loyaltyapi.schemas.points import (
    PointsBalanceResponse,
    PointsIntegrityCheckResponse,
    PointsLedgerEntry,
    PointsLedgerResponse,
)
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.services.history_service import HistoryService
from loyaltyapi.services.point_service import PointService

router = APIRouter(prefix="/points", tags=["points"])


@router.get("/balance", response_model=PointsBalanceResponse)
def get_my_balance(
    current_user: UserSchema = Depends(get_current_active_user),
    point_service: PointService = Depends(get_point_service),
) -> PointsBalanceResponse:
    """내 포인트 잔액 조회 (users.points)"""
    return point_service.get_user_balance(current_user.id)


@router.get("/ledger", response_model=PointsLedgerResponse)
def get_my_ledger(
    limit: int = Query(50, ge=1, le=100, description="페이지 크기"),
    offset: int = Query(0, ge=0, description="오프셋"),
    current_user: UserSchema = Depends(get_current_active_user),
    point_service: PointService = Depends(get_point_service),
) -> PointsLedgerResponse:
    """
    내 포인트 거래 내역 조회

    사용 예시:
        GET /points/ledger?limit=20&offset=0
    """
    return point_service.get_user_ledger(current_user.id, limit=limit, offset=offset)


@router.get("/recent", response_model=List[PointsLedgerEntry])
def get_recent_points(
    current_user: UserSchema = Depends(get_current_active_user),
    history_service: HistoryService = Depends(get_history_service),
) -> List[PointsLedgerEntry]:
    return history_service.get_recent_points(current_user.id)


@router.get("/integrity/my", response_model=PointsIntegrityCheckResponse)
def verify_my_integrity(
    current_user: UserSchema = Depends(get_current_active_user),
    point_service: PointService = Depends(get_point_service),
) -> PointsIntegrityCheckResponse:
    return point_service.verify_user_integrity(current_user.id)
