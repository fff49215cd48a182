from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from loyaltyapi.models.raffle import RaffleStatus


class RaffleCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    reward: str = Field(..., min_length=1, description="상품 설명")
    status: RaffleStatus = RaffleStatus.ACTIVE
    draw_date: Optional[datetime] = None


class RaffleUpdateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    reward: str = Field(..., min_length=1)
    draw_date: Optional[datetime] = None


class RaffleResponse(BaseModel):
    id: int
    title: str
    reward: str
    status: str
    draw_date: Optional[datetime] = None
    winner_id: Optional[int] = None
    winner_username: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RaffleSummary(RaffleResponse):
    """관리자 목록 - 티켓 수 포함"""

    total_entries: int = 0


class RaffleTicket(BaseModel):
    raffle_id: int
    raffle_title: str
    ticket_number: int
    created_at: Optional[datetime] = None


class RaffleWinner(BaseModel):
    raffle_id: int
    reward: str
    username: str
    draw_date: Optional[datetime] = None


class RaffleParticipant(BaseModel):
    user_id: int
    username: str
    email: Optional[str] = None
    ticket_count: int


class RaffleOverviewResponse(BaseModel):
    raffles: List[RaffleResponse]
    my_tickets: List[RaffleTicket]
    winners: List[RaffleWinner]


class TicketExchangeRequest(BaseModel):
    amount: int = Field(..., description="교환할 포인트 (티켓 가격의 배수)")


class TicketExchangeResponse(BaseModel):
    raffle_id: int
    points_spent: int
    ticket_numbers: List[int]
    balance_after: int


class WinnerAssignRequest(BaseModel):
    user_id: int = Field(..., gt=0)
