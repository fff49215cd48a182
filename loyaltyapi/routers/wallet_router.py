from fastapi import APIRouter, Depends, Path

from loyaltyapi.core.auth_middleware import get_current_active_user
from loyaltyapi.deps import get_wallet_service
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.schemas.wallet import WalletListResponse
from loyaltyapi.services.wallet_service import WalletService

router = APIRouter(prefix="/wallets", tags=["wallets"])


@router.get("", response_model=WalletListResponse)
def get_wallets(
    current_user: UserSchema = Depends(get_current_active_user),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletListResponse:
    return wallet_service.get_wallets(current_user.id)


@router.get("/{currency}", response_model=WalletListResponse)
def get_wallet(
    currency: str = Path(..., min_length=2, max_length=10),
    current_user: UserSchema = Depends(get_current_active_user),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletListResponse:
    """선택한 통화 지갑 (목록 포함)"""
    return wallet_service.get_wallet(current_user.id, currency)
