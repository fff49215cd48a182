import httpx
from urllib.parse import urlencode
from loyaltyapi.config import settings
from loyaltyapi.core.exceptions import OAuthError
from loyaltyapi.schemas.oauth import LinkedIdentity, OAuthTokenResponse, OAuthUserInfo
import logging

logger = logging.getLogger(__name__)


class GoogleOAuthProvider:
    """
    구글 계정 연동 - 유튜브 채널 ID를 얻기 위해 youtube.readonly 범위를 요청합니다.

    코어는 연동 결과(google_id, youtube_channel_id)만 사용합니다.
    """

    def __init__(self):
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET
        self.auth_url = "https://accounts.google.com/o/oauth2/auth"
        self.token_url = "https://oauth2.googleapis.com/token"
        self.user_info_url = "https://www.googleapis.com/oauth2/v2/userinfo"
        self.channels_url = "https://www.googleapis.com/youtube/v3/channels"
        self.scope = "openid email profile https://www.googleapis.com/auth/youtube.readonly"

    def generate_auth_url(self, redirect_uri: str, state: str) -> str:
        """Generate Google OAuth authorization URL"""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "scope": self.scope,
            "state": state,
        }
        return f"{self.auth_url}?{urlencode(params)}"

    async def get_access_token(self, code: str, redirect_uri: str) -> OAuthTokenResponse:
        """Exchange authorization code for access token"""
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    self.token_url,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": redirect_uri,
                        "grant_type": "authorization_code",
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Google token exchange transport error: {str(e)}")
            raise OAuthError("OAuth provider unreachable")

        if response.status_code != 200:
            logger.error(f"Google token exchange failed: {response.text}")
            raise OAuthError("Failed to exchange authorization code")

        data = response.json()
        if "access_token" not in data:
            raise OAuthError("Invalid token response from provider")
        return OAuthTokenResponse(**data)

    async def _get_json(self, url: str, access_token: str, params=None) -> dict:
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.get(
                    url,
                    params=params,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Google API transport error for {url}: {str(e)}")
            raise OAuthError("OAuth provider unreachable")

        if response.status_code != 200:
            logger.error(f"Google API call failed ({url}): {response.text}")
            raise OAuthError("Failed to fetch account information")
        return response.json()

    async def get_user_info(self, access_token: str) -> OAuthUserInfo:
        """Get user information from Google"""
        user_data = await self._get_json(self.user_info_url, access_token)
        if not user_data.get("id"):
            raise OAuthError("Account id not provided by OAuth provider")

        return OAuthUserInfo(
            id=str(user_data["id"]),
            email=user_data.get("email"),
            name=user_data.get("name") or user_data.get("given_name"),
        )

    async def get_channel_id(self, access_token: str) -> str:
        """로그인한 계정의 유튜브 채널 ID"""
        data = await self._get_json(
            self.channels_url, access_token, params={"part": "id", "mine": "true"}
        )
        items = data.get("items") or []
        if not items:
            raise OAuthError("No YouTube channel on this Google account")
        return items[0]["id"]

    async def link_identity(self, code: str, redirect_uri: str) -> LinkedIdentity:
        token = await self.get_access_token(code, redirect_uri)
        info = await self.get_user_info(token.access_token)
        channel_id = await self.get_channel_id(token.access_token)
        return LinkedIdentity(
            google_id=info.id,
            email=info.email,
            name=info.name,
            youtube_channel_id=channel_id,
        )
