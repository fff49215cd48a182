import asyncio
from typing import Optional

from sqlalchemy.orm import Session

from loyaltyapi.core.exceptions import AuthenticationError
from loyaltyapi.providers.identity.base import Identity, IdentityProvider
from loyaltyapi.providers.oauth.google import GoogleOAuthProvider
from loyaltyapi.repositories.user_repository import UserRepository
from loyaltyapi.schemas.oauth import LinkedIdentity


class GoogleLinkedProvider(IdentityProvider):
    """이미 구글 계정을 연동한 사용자의 OAuth 로그인"""

    name = "google"

    def __init__(self, db: Session, oauth: Optional[GoogleOAuthProvider] = None):
        self.user_repo = UserRepository(db)
        self.oauth = oauth or GoogleOAuthProvider()

    async def fetch_identity(self, code: str, redirect_uri: str) -> LinkedIdentity:
        return await self.oauth.link_identity(code, redirect_uri)

    async def authenticate(self, code: str = "", redirect_uri: str = "", **_) -> Identity:
        linked = await self.fetch_identity(code, redirect_uri)
        user = await asyncio.to_thread(self.user_repo.get_by_google_id, linked.google_id)
        if user is None:
            raise AuthenticationError("Google account is not linked to any user")
        return Identity(user_id=user.id, role=user.role.value)
