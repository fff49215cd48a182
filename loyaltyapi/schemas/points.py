from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class PointsBalanceResponse(BaseModel):
    """포인트 잔액 응답"""

    balance: int = Field(..., description="현재 포인트 잔액")

    class Config:
        from_attributes = True


class PointsLedgerEntry(BaseModel):
    """포인트 원장 항목"""

    id: int = Field(..., description="원장 항목 ID")
    transaction_type: str = Field(..., description="CREDIT | DEBIT")
    delta_points: int = Field(..., description="포인트 변화량")
    balance_after: int = Field(..., description="트랜잭션 후 잔액")
    reason: str = Field(..., description="트랜잭션 사유")
    source: str = Field(..., description="포인트 출처")
    status: str = Field("success", description="success | pending | rejected")
    created_at: str = Field(..., description="생성 시간")

    class Config:
        from_attributes = True


class PointsLedgerResponse(BaseModel):
    """포인트 원장 조회 응답"""

    balance: int = Field(..., description="현재 잔액")
    entries: List[PointsLedgerEntry] = Field(..., description="원장 항목 목록")
    total_count: int = Field(..., description="전체 항목 수")
    has_next: bool = Field(..., description="다음 페이지 존재 여부")

    class Config:
        from_attributes = True


class PointsTransactionResponse(BaseModel):
    """포인트 트랜잭션 응답"""

    success: bool = Field(..., description="성공 여부")
    transaction_id: Optional[int] = Field(None, description="원장 항목 ID")
    delta_points: int = Field(..., description="포인트 변화량")
    balance_after: int = Field(..., description="트랜잭션 후 잔액")
    message: str = Field(..., description="응답 메시지")

    class Config:
        from_attributes = True


class AdminPointsAdjustmentRequest(BaseModel):
    """관리자 포인트 조정 요청 (양수: 지급, 음수: 차감)"""

    amount: int = Field(..., description="조정할 포인트")
    reason: str = Field("Admin adjustment", min_length=1, max_length=255)

    @field_validator("amount")
    @classmethod
    def amount_must_not_be_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("Amount must not be zero")
        return v


class PointsIntegrityCheckResponse(BaseModel):
    """포인트 정합성 검증 응답"""

    status: str = Field(..., description="검증 상태 (OK, MISMATCH)")
    user_id: Optional[int] = Field(None, description="사용자 ID (전체 검증 시 None)")
    calculated_balance: int = Field(..., description="원장 합계")
    recorded_balance: int = Field(..., description="users.points 값")
    entry_count: int = Field(..., description="원장 항목 수")
    mismatched_users: List[int] = Field(default_factory=list)
    verified_at: str = Field(..., description="검증 시각")
