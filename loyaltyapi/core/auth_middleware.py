from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from loyaltyapi.database.session import get_db
from loyaltyapi.core.exceptions import AuthenticationError, AuthorizationError
from loyaltyapi.core.security import decode_access_token
from loyaltyapi.repositories.user_repository import UserRepository
from loyaltyapi.schemas.user import RequestContext, User as UserSchema
from loyaltyapi.services.wallet_service import WalletService

# JWT Bearer 토큰 스킴
security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> UserSchema:
    """필수 사용자 인증 - 유효한 토큰이 필요함"""
    if not credentials:
        raise AuthenticationError("Authentication required")

    token_data = decode_access_token(credentials.credentials)
    user = UserRepository(db).get_by_id(token_data.user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")

    # 예외 핸들러 로그에 사용자 표시
    request.state.user_id = user.id
    return user


def get_current_active_user(
    current_user: UserSchema = Depends(get_current_user),
) -> UserSchema:
    """차단되지 않은 사용자만 허용"""
    if not current_user.is_active:
        raise AuthorizationError("Account is banned")
    return current_user


def require_admin(
    current_user: UserSchema = Depends(get_current_active_user),
) -> UserSchema:
    """관리자 권한이 필요한 엔드포인트용 의존성"""
    if not current_user.is_admin:
        raise AuthorizationError("Admin privileges required")
    return current_user


def get_request_context(
    current_user: UserSchema = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> RequestContext:
    """요청 단위 잔액/지갑 컨텍스트 - 요청마다 한 번만 조회"""
    return WalletService(db).build_context(current_user)
