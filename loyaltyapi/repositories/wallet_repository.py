from typing import List, Optional, Sequence
from sqlalchemy.orm import Session

from loyaltyapi.models.user import User as UserModel
from loyaltyapi.models.wallet import UserWallet as UserWalletModel
from loyaltyapi.schemas.wallet import AdminWalletItem, WalletResponse
from loyaltyapi.repositories.base import BaseRepository


class WalletRepository(BaseRepository[UserWalletModel, WalletResponse]):
    """통화별 지갑 - 포인트와 독립적이며 변환 경로 없음"""

    def __init__(self, db: Session):
        super().__init__(UserWalletModel, WalletResponse, db)

    def get_wallets(self, user_id: int) -> List[WalletResponse]:
        self._ensure_clean_session()
        rows = (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(self.model_class.currency.asc())
            .all()
        )
        return [self._to_schema(row) for row in rows]

    def get_wallet(self, user_id: int, currency: str) -> Optional[WalletResponse]:
        self._ensure_clean_session()
        row = (
            self.db.query(self.model_class)
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.currency == currency.upper(),
            )
            .first()
        )
        return self._to_schema(row)

    def create_default_wallets(
        self, user_id: int, currencies: Sequence[str]
    ) -> List[WalletResponse]:
        """사용자 생성 트랜잭션 안에서 통화별 지갑 행 생성"""
        rows = [
            self.model_class(user_id=user_id, currency=currency.upper(), balance=0)
            for currency in currencies
        ]
        self.db.add_all(rows)
        self.db.flush()
        return [self._to_schema(row) for row in rows]

    def list_all_wallets(self) -> List[AdminWalletItem]:
        self._ensure_clean_session()
        rows = (
            self.db.query(self.model_class, UserModel.username)
            .join(UserModel, UserModel.id == self.model_class.user_id)
            .order_by(UserModel.username.asc(), self.model_class.currency.asc())
            .all()
        )
        return [
            AdminWalletItem(
                user_id=wallet.user_id,
                username=username,
                currency=wallet.currency,
                balance=wallet.balance,
            )
            for wallet, username in rows
        ]
