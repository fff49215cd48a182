"""
인증 API 라우터

- POST /auth/register: 로컬 가입 (포인트 0 + 통화별 지갑 생성)
- POST /auth/login: 이메일/비밀번호 로그인
- GET /auth/google/authorize: 구글 동의 화면 URL 발급
- POST /auth/google/login: 연동된 구글 계정으로 로그인
- POST /auth/google/link: 구글/유튜브 채널 연동 (채팅 보상 대상)
- GET /auth/me: 요청 컨텍스트 (잔액, 지갑)
"""

import secrets

from fastapi import APIRouter, Depends, Query, status

from loyaltyapi.core.auth_middleware import get_current_active_user, get_request_context
from loyaltyapi.deps import get_user_service
from loyaltyapi.providers.oauth.google import GoogleOAuthProvider
from loyaltyapi.schemas.auth import (
    GoogleAuthUrlResponse,
    LoginRequest,
    LoginResponse,
    OAuthLinkRequest,
    RegisterRequest,
)
from loyaltyapi.schemas.user import RequestContext, User as UserSchema
from loyaltyapi.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    user_service: UserService = Depends(get_user_service),
) -> UserSchema:
    return user_service.register(request)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    user_service: UserService = Depends(get_user_service),
) -> LoginResponse:
    """로그인 성공 시 토큰과 이동 경로(관리자 /admin, 사용자 /dashboard) 반환"""
    return await user_service.authenticate(
        "local", email=request.email, password=request.password
    )


@router.get("/google/authorize", response_model=GoogleAuthUrlResponse)
def google_authorize_url(
    redirect_uri: str = Query(..., description="OAuth 콜백 URL"),
) -> GoogleAuthUrlResponse:
    """구글 동의 화면 URL - state는 클라이언트가 콜백에서 검증"""
    state = secrets.token_urlsafe(16)
    return GoogleAuthUrlResponse(
        auth_url=GoogleOAuthProvider().generate_auth_url(redirect_uri, state), state=state
    )


@router.post("/google/login", response_model=LoginResponse)
async def google_login(
    request: OAuthLinkRequest,
    user_service: UserService = Depends(get_user_service),
) -> LoginResponse:
    return await user_service.authenticate(
        "google", code=request.code, redirect_uri=request.redirect_uri
    )


@router.post("/google/link", response_model=UserSchema)
async def link_google(
    request: OAuthLinkRequest,
    current_user: UserSchema = Depends(get_current_active_user),
    user_service: UserService = Depends(get_user_service),
) -> UserSchema:
    return await user_service.link_google(current_user.id, request.code, request.redirect_uri)


@router.get("/me", response_model=RequestContext)
def me(context: RequestContext = Depends(get_request_context)) -> RequestContext:
    return context
