from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class TipRequest(BaseModel):
    recipient_username: str = Field(..., min_length=1)
    amount: int = Field(..., description="송금 포인트")


class TipResponse(BaseModel):
    transfer_id: int
    recipient_username: str
    amount: int
    balance_after: int
    message: str


class TipHistoryItem(BaseModel):
    id: int
    sender_id: int
    sender_username: str
    recipient_id: int
    recipient_username: str
    amount: int
    created_at: Optional[datetime] = None


class TipHistoryResponse(BaseModel):
    history: List[TipHistoryItem]
