from fastapi import APIRouter, Depends

from loyaltyapi.core.auth_middleware import get_current_active_user
from loyaltyapi.deps import get_tip_service
from loyaltyapi.schemas.tip import TipHistoryResponse, TipRequest, TipResponse
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.services.tip_service import TipService

router = APIRouter(prefix="/tip", tags=["tip"])


@router.get("", response_model=TipHistoryResponse)
def get_tip_history(
    current_user: UserSchema = Depends(get_current_active_user),
    tip_service: TipService = Depends(get_tip_service),
) -> TipHistoryResponse:
    """보낸/받은 팁 내역 (최근 20건)"""
    return TipHistoryResponse(history=tip_service.get_tip_history(current_user.id))


@router.post("", response_model=TipResponse)
def send_tip(
    request: TipRequest,
    current_user: UserSchema = Depends(get_current_active_user),
    tip_service: TipService = Depends(get_tip_service),
) -> TipResponse:
    return tip_service.send_tip(current_user.id, request.recipient_username, request.amount)
