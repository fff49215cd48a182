from typing import Optional

from sqlalchemy.orm import Session

from loyaltyapi.config import Settings, settings as default_settings
from loyaltyapi.core.exceptions import NotFoundError
from loyaltyapi.repositories.points_repository import PointsRepository
from loyaltyapi.repositories.wallet_repository import WalletRepository
from loyaltyapi.schemas.user import RequestContext, User as UserSchema
from loyaltyapi.schemas.wallet import WalletListResponse, WalletResponse


class WalletService:
    """통화별 지갑 조회와 요청 단위 컨텍스트 구성"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.wallet_repo = WalletRepository(db)
        self.points_repo = PointsRepository(db)

    def _default_wallet(self, wallets) -> WalletResponse:
        default_currency = self.settings.WALLET_CURRENCIES[0]
        for wallet in wallets:
            if wallet.currency == default_currency:
                return wallet
        return wallets[0] if wallets else WalletResponse(currency=default_currency, balance=0)

    def get_wallets(self, user_id: int) -> WalletListResponse:
        wallets = self.wallet_repo.get_wallets(user_id)
        return WalletListResponse(wallets=wallets, selected_wallet=self._default_wallet(wallets))

    def get_wallet(self, user_id: int, currency: str) -> WalletListResponse:
        wallets = self.wallet_repo.get_wallets(user_id)
        selected = next((w for w in wallets if w.currency == currency.upper()), None)
        if selected is None:
            raise NotFoundError(
                f"Wallet not found: {currency}", {"currency": currency}, "WALLET_404"
            )
        return WalletListResponse(wallets=wallets, selected_wallet=selected)

    def build_context(self, user: UserSchema) -> RequestContext:
        """요청마다 한 번 - 포인트 잔액과 지갑 목록"""
        wallets = self.wallet_repo.get_wallets(user.id)
        return RequestContext(
            user_id=user.id,
            username=user.username,
            role=user.role,
            points=self.points_repo.get_user_balance(user.id),
            wallets=wallets,
            selected_wallet=self._default_wallet(wallets),
        )

    def list_all_wallets(self):
        return self.wallet_repo.list_all_wallets()
