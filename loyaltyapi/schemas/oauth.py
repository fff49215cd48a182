from typing import Optional
from pydantic import BaseModel


class OAuthTokenResponse(BaseModel):
    access_token: str
    token_type: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None


class OAuthUserInfo(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


class LinkedIdentity(BaseModel):
    """OAuth 연동 결과 - 구글 계정 ID와 유튜브 채널 ID"""

    google_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    youtube_channel_id: str
