import asyncio

from sqlalchemy.orm import Session

from loyaltyapi.core.exceptions import AuthenticationError
from loyaltyapi.core.security import verify_password
from loyaltyapi.providers.identity.base import Identity, IdentityProvider
from loyaltyapi.repositories.user_repository import UserRepository


class LocalPasswordProvider(IdentityProvider):
    """이메일 + bcrypt 비밀번호"""

    name = "local"

    def __init__(self, db: Session):
        self.user_repo = UserRepository(db)

    async def authenticate(self, email: str = "", password: str = "", **_) -> Identity:
        # bcrypt 검증과 조회는 이벤트 루프 밖에서
        return await asyncio.to_thread(self._check_password, email, password)

    def _check_password(self, email: str, password: str) -> Identity:
        found = self.user_repo.get_password_hash(email)
        if found is None or not verify_password(password, found[1]):
            raise AuthenticationError("Invalid email or password")

        user = self.user_repo.get_by_id(found[0])
        return Identity(user_id=user.id, role=user.role.value)
