import asyncio
import logging
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from loyaltyapi.config import Settings, settings as default_settings
from loyaltyapi.core.exceptions import ConflictError, OAuthError, UserNotFoundError
from loyaltyapi.core.security import create_access_token, hash_password
from loyaltyapi.models.user import UserRole
from loyaltyapi.providers.identity import (
    GoogleLinkedProvider,
    IdentityProvider,
    LocalPasswordProvider,
)
from loyaltyapi.repositories.user_repository import UserRepository
from loyaltyapi.repositories.wallet_repository import WalletRepository
from loyaltyapi.schemas.auth import LoginResponse, RegisterRequest
from loyaltyapi.schemas.oauth import LinkedIdentity
from loyaltyapi.schemas.user import User as UserSchema, UserListResponse

logger = logging.getLogger(__name__)


class UserService:
    """사용자 가입/인증/관리"""

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        identity_providers: Optional[Dict[str, IdentityProvider]] = None,
    ):
        self.db = db
        self.settings = settings or default_settings
        self.user_repo = UserRepository(db)
        self.wallet_repo = WalletRepository(db)
        self.identity_providers = identity_providers or {
            "local": LocalPasswordProvider(db),
            "google": GoogleLinkedProvider(db),
        }

    def register(self, request: RegisterRequest) -> UserSchema:
        """사용자 + 통화별 지갑을 한 트랜잭션으로 생성 (포인트 0)"""
        if self.user_repo.get_by_username(request.username):
            raise ConflictError("Username already taken", {"username": request.username}, "USER_409")
        if self.user_repo.get_by_email(request.email):
            raise ConflictError("Email already registered", {"email": request.email}, "USER_409")

        try:
            user = self.user_repo.create_user(
                username=request.username,
                email=request.email,
                password_hash=hash_password(request.password),
            )
            self.wallet_repo.create_default_wallets(user.id, self.settings.WALLET_CURRENCIES)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Username or email already registered", error_code="USER_409")

        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    def issue_login(self, user_id: int, role: str) -> LoginResponse:
        token = create_access_token({"sub": str(user_id), "role": role})
        return LoginResponse(
            user_id=user_id,
            role=role,
            token=token,
            redirect_to="/admin" if UserRole.is_admin(role) else "/dashboard",
        )

    async def authenticate(self, provider: str, **credentials) -> LoginResponse:
        identity_provider = self.identity_providers.get(provider)
        if identity_provider is None:
            raise OAuthError(f"Unsupported identity provider: {provider}")

        identity = await identity_provider.authenticate(**credentials)
        logger.info(f"User {identity.user_id} logged in via {provider}")
        return self.issue_login(identity.user_id, identity.role)

    async def link_google(self, user_id: int, code: str, redirect_uri: str) -> UserSchema:
        """구글 계정/유튜브 채널 연동 - 채팅 보상 대상이 됨"""
        provider = self.identity_providers["google"]
        linked = await provider.fetch_identity(code, redirect_uri)
        return await asyncio.to_thread(self._store_google_link, user_id, linked)

    def _store_google_link(self, user_id: int, linked: LinkedIdentity) -> UserSchema:
        owner = self.user_repo.get_by_google_id(linked.google_id)
        if owner is not None and owner.id != user_id:
            raise ConflictError(
                "Google account already linked to another user", error_code="OAUTH_409"
            )

        user = self.user_repo.link_google_identity(
            user_id, linked.google_id, linked.youtube_channel_id
        )
        if user is None:
            raise UserNotFoundError(user_id)
        self.db.commit()
        logger.info(f"User {user_id} linked YouTube channel {linked.youtube_channel_id}")
        return user

    def get_user(self, user_id: int) -> UserSchema:
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def list_users(self, limit: int = 100, offset: int = 0) -> UserListResponse:
        return UserListResponse(
            users=self.user_repo.list_users(limit=limit, offset=offset),
            total_count=self.user_repo.count(),
        )

    def set_ban(self, user_id: int, banned: bool) -> UserSchema:
        user = self.user_repo.set_banned(user_id, banned)
        if user is None:
            raise UserNotFoundError(user_id)
        self.db.commit()
        logger.info(f"User {user_id} ban set to {banned}")
        return user
