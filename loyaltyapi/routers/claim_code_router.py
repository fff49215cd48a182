from fastapi import APIRouter, Depends

from loyaltyapi.core.auth_middleware import get_current_active_user
from loyaltyapi.deps import get_claim_code_service
from loyaltyapi.schemas.claim_code import ClaimCodeRedeemRequest, ClaimCodeRedeemResponse
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.services.claim_code_service import ClaimCodeService

router = APIRouter(tags=["claim-code"])


@router.post("/claim-code", response_model=ClaimCodeRedeemResponse)
def redeem_claim_code(
    request: ClaimCodeRedeemRequest,
    current_user: UserSchema = Depends(get_current_active_user),
    claim_code_service: ClaimCodeService = Depends(get_claim_code_service),
) -> ClaimCodeRedeemResponse:
    """클레임 코드 사용 (대소문자/공백 무시)"""
    return claim_code_service.redeem_claim_code(current_user.id, request.code)
