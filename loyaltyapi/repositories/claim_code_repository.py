from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from loyaltyapi.models.claim_code import (
    ClaimCode as ClaimCodeModel,
    ClaimCodeRedemption as ClaimCodeRedemptionModel,
)
from loyaltyapi.schemas.claim_code import ClaimCodeResponse
from loyaltyapi.repositories.base import BaseRepository


class ClaimCodeRepository(BaseRepository[ClaimCodeModel, ClaimCodeResponse]):
    def __init__(self, db: Session):
        super().__init__(ClaimCodeModel, ClaimCodeResponse, db)

    def lock_by_code(self, code: str) -> Optional[ClaimCodeModel]:
        """정규화된(대문자) 코드 행을 FOR UPDATE로 잠금"""
        self._ensure_clean_session()
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.code == code)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )

    def has_redeemed(self, code_id: int, user_id: int) -> bool:
        return (
            self.db.query(ClaimCodeRedemptionModel.id)
            .filter(
                ClaimCodeRedemptionModel.code_id == code_id,
                ClaimCodeRedemptionModel.user_id == user_id,
            )
            .first()
            is not None
        )

    def redemption_count(self, code_id: int) -> int:
        return (
            self.db.query(func.count(ClaimCodeRedemptionModel.id))
            .filter(ClaimCodeRedemptionModel.code_id == code_id)
            .scalar()
            or 0
        )

    def insert_redemption(self, code_id: int, user_id: int) -> None:
        self.db.add(ClaimCodeRedemptionModel(code_id=code_id, user_id=user_id))
        self.db.flush()

    def list_with_counts(self) -> List[ClaimCodeResponse]:
        self._ensure_clean_session()
        redeemed = func.count(ClaimCodeRedemptionModel.id)
        rows = (
            self.db.query(self.model_class, redeemed)
            .outerjoin(
                ClaimCodeRedemptionModel,
                ClaimCodeRedemptionModel.code_id == self.model_class.id,
            )
            .group_by(self.model_class.id)
            .order_by(self.model_class.id.desc())
            .all()
        )
        return [
            ClaimCodeResponse(
                **ClaimCodeResponse.model_validate(code).model_dump(exclude={"redeemed_count"}),
                redeemed_count=count,
            )
            for code, count in rows
        ]

    def delete_with_redemptions(self, code_id: int) -> bool:
        self.db.query(ClaimCodeRedemptionModel).filter(
            ClaimCodeRedemptionModel.code_id == code_id
        ).delete(synchronize_session=False)
        return self.delete(code_id)
