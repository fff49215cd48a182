from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from loyaltyapi.models.claim_code import ClaimCodeStatus


class ClaimCodeRedeemRequest(BaseModel):
    code: str = Field(..., description="클레임 코드 (대소문자 무시)")


class ClaimCodeRedeemResponse(BaseModel):
    success: bool = True
    message: str
    reward: int
    balance_after: int


class ClaimCodeCreateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    points: int = Field(..., gt=0)
    expiry_date: Optional[datetime] = None
    max_claims: Optional[int] = Field(None, ge=0, description="0 또는 미지정 = 무제한")
    status: ClaimCodeStatus = ClaimCodeStatus.ACTIVE


class ClaimCodeResponse(BaseModel):
    id: int
    code: str
    reward: int
    status: str
    expiry_date: Optional[datetime] = None
    max_claims: Optional[int] = None
    redeemed_count: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
