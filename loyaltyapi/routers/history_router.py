from fastapi import APIRouter, Depends, Query

from loyaltyapi.core.auth_middleware import get_current_active_user
from loyaltyapi.deps import get_history_service
from loyaltyapi.schemas.history import HistoryResponse
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.services.history_service import HistoryService

router = APIRouter(prefix="/history", tags=["history"])


@router.get("", response_model=HistoryResponse)
def get_history(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: UserSchema = Depends(get_current_active_user),
    history_service: HistoryService = Depends(get_history_service),
) -> HistoryResponse:
    """포인트 원장 + 태스크 기록 통합 내역 (최신순)"""
    return history_service.get_user_history(current_user.id, limit=limit, offset=offset)
