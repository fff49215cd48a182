from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from loyaltyapi.models.user import UserRole
from loyaltyapi.schemas.wallet import WalletResponse


class User(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    role: UserRole = UserRole.USER
    points: int = 0
    is_banned: bool = False
    youtube_channel_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(self.role)

    @property
    def is_active(self) -> bool:
        return not self.is_banned


class UserListResponse(BaseModel):
    users: List[User]
    total_count: int


class BanRequest(BaseModel):
    banned: bool = Field(..., description="true: ban, false: unban")


class RequestContext(BaseModel):
    """요청 단위 컨텍스트 - 화면 공통 헤더에 필요한 잔액 정보를 한 번만 조회"""

    user_id: int
    username: str
    role: UserRole
    points: int
    wallets: List[WalletResponse] = Field(default_factory=list)
    selected_wallet: WalletResponse
