from pydantic import BaseModel
from typing import Optional


class BalanceChangedEvent(BaseModel):
    """커밋된 잔액 변경 알림 - 실시간 화면 갱신용"""

    user_id: int
    delta_points: int
    balance_after: int
    source: str
    ledger_id: Optional[int] = None
    event_type: str = "balance_changed"


class RaffleCreatedEvent(BaseModel):
    raffle_id: int
    title: str
    event_type: str = "raffle_created"
