"""
래플 API 라우터

- GET /raffles: active 래플, 내 티켓, 최근 당첨자
- POST /raffles/exchange: 포인트 -> 티켓 교환 (티켓 가격의 배수)
"""

from fastapi import APIRouter, Depends

from loyaltyapi.core.auth_middleware import get_current_active_user
from loyaltyapi.deps import get_raffle_service
from loyaltyapi.schemas.raffle import (
    RaffleOverviewResponse,
    TicketExchangeRequest,
    TicketExchangeResponse,
)
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.services.raffle_service import RaffleService

router = APIRouter(prefix="/raffles", tags=["raffles"])


@router.get("", response_model=RaffleOverviewResponse)
def get_raffles(
    current_user: UserSchema = Depends(get_current_active_user),
    raffle_service: RaffleService = Depends(get_raffle_service),
) -> RaffleOverviewResponse:
    return raffle_service.get_overview(current_user.id)


@router.post("/exchange", response_model=TicketExchangeResponse)
def exchange_points(
    request: TicketExchangeRequest,
    current_user: UserSchema = Depends(get_current_active_user),
    raffle_service: RaffleService = Depends(get_raffle_service),
) -> TicketExchangeResponse:
    """
    포인트를 현재 래플(가장 최근 active) 티켓으로 교환

    HTTP Status:
        200: 교환 성공 (발급된 티켓 번호 포함)
        400: 금액 오류 / 잔액 부족 / active 래플 없음
    """
    return raffle_service.exchange_points_for_tickets(current_user.id, request.amount)
