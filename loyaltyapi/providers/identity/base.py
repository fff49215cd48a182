from abc import ABC, abstractmethod

from pydantic import BaseModel


class Identity(BaseModel):
    """인증 결과 - 코어는 어떤 방식으로 인증됐는지 보지 않고 이 값만 사용"""

    user_id: int
    role: str


class IdentityProvider(ABC):
    name: str = ""

    @abstractmethod
    async def authenticate(self, **credentials) -> Identity:
        """자격 증명을 확인하고 Identity 반환, 실패 시 AuthenticationError"""
