from pydantic import BaseModel, Field
from typing import List


class WalletResponse(BaseModel):
    currency: str
    balance: int

    class Config:
        from_attributes = True


class WalletListResponse(BaseModel):
    wallets: List[WalletResponse] = Field(default_factory=list)
    selected_wallet: WalletResponse


class AdminWalletItem(BaseModel):
    user_id: int
    username: str
    currency: str
    balance: int
