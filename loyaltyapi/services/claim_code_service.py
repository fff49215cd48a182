import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from loyaltyapi.config import Settings
from loyaltyapi.core.exceptions import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    InvalidCodeError,
    MaxClaimsReachedError,
    NotFoundError,
)
from loyaltyapi.models.claim_code import ClaimCodeStatus
from loyaltyapi.models.points import LedgerSource
from loyaltyapi.repositories.claim_code_repository import ClaimCodeRepository
from loyaltyapi.schemas.claim_code import (
    ClaimCodeCreateRequest,
    ClaimCodeRedeemResponse,
    ClaimCodeResponse,
)
from loyaltyapi.services.point_service import PointService
from loyaltyapi.utils.timezone_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


class ClaimCodeService:
    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        point_service: Optional[PointService] = None,
    ):
        self.db = db
        self.code_repo = ClaimCodeRepository(db)
        self.point_service = point_service or PointService(db, settings=settings)

    def redeem_claim_code(self, user_id: int, code: str) -> ClaimCodeRedeemResponse:
        """
        클레임 코드 사용

        코드 행을 잠근 상태에서 검사 순서대로 실패를 판정합니다:
        유효하지 않음 -> 만료 -> 이미 사용 -> 한도 초과.
        """
        normalized = normalize_code(code)
        if not normalized:
            raise InvalidCodeError()

        with self.point_service.settlement():
            claim_code = self.code_repo.lock_by_code(normalized)
            if claim_code is None or claim_code.status != ClaimCodeStatus.ACTIVE.value:
                raise InvalidCodeError(details={"code": normalized})

            expiry = ensure_utc(claim_code.expiry_date)
            if expiry is not None and expiry < utc_now():
                raise ExpiredError(details={"code": normalized})

            if self.code_repo.has_redeemed(claim_code.id, user_id):
                raise AlreadyUsedError(details={"code": normalized})

            if claim_code.max_claims and (
                self.code_repo.redemption_count(claim_code.id) >= claim_code.max_claims
            ):
                raise MaxClaimsReachedError(details={"code": normalized})

            entry = self.point_service.apply_delta(
                user_id,
                claim_code.reward,
                f"Claim code {normalized}",
                LedgerSource.CLAIM_CODE,
            )
            self.code_repo.insert_redemption(claim_code.id, user_id)

        logger.info(f"User {user_id} redeemed claim code {normalized} (+{entry.delta_points})")
        return ClaimCodeRedeemResponse(
            message=f"Success! You received {entry.delta_points} points.",
            reward=entry.delta_points,
            balance_after=entry.balance_after,
        )

    # ------------------------------------------------------------------
    # 관리자
    # ------------------------------------------------------------------

    def list_claim_codes(self) -> List[ClaimCodeResponse]:
        return self.code_repo.list_with_counts()

    def create_claim_code(self, request: ClaimCodeCreateRequest) -> ClaimCodeResponse:
        code = normalize_code(request.code)
        if self.code_repo.exists({"code": code}):
            raise ConflictError("Claim code already exists", {"code": code}, "CODE_409")

        created = self.code_repo.create(
            commit=True,
            code=code,
            reward=request.points,
            status=request.status.value,
            expiry_date=request.expiry_date,
            max_claims=request.max_claims or None,
        )
        logger.info(f"Created claim code {code} ({request.points} points)")
        return created

    def delete_claim_code(self, code_id: int) -> bool:
        with self.point_service.settlement():
            if not self.code_repo.delete_with_redemptions(code_id):
                raise NotFoundError(
                    f"Claim code not found: {code_id}", {"code_id": code_id}, "CODE_404"
                )
        return True
