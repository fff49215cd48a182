from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional


class TokenData(BaseModel):
    user_id: Optional[int] = None
    role: Optional[str] = None


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("username")
    @classmethod
    def username_must_not_be_blank(cls, v: str) -> str:
        if v.strip() == "":
            raise ValueError("Username cannot be empty")
        return v.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    user_id: int
    role: str
    token: str
    redirect_to: str  # 관리자는 /admin, 일반 사용자는 /dashboard


class OAuthLinkRequest(BaseModel):
    code: str
    redirect_uri: str


class GoogleAuthUrlResponse(BaseModel):
    auth_url: str
    state: str
