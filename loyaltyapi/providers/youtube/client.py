"""
YouTube Data API v3 클라이언트 (라이브 채팅 전용)

- get_live_chat_id: 영상 ID -> activeLiveChatId
- list_chat_messages: 라이브 채팅 메시지 페이지 조회
"""

import logging
from typing import Optional

import httpx

from loyaltyapi.config import settings
from loyaltyapi.core.exceptions import BusinessLogicError
from loyaltyapi.schemas.livestream import ChatMessage, ChatMessagePage

logger = logging.getLogger(__name__)

# 채팅 종료를 뜻하는 API 오류 사유
CHAT_ENDED_REASONS = {"liveChatEnded", "liveChatNotFound", "liveChatDisabled"}


class YouTubeAPIError(Exception):
    """YouTube API 호출 실패 (쿼터 초과 등) - 다음 폴링에서 재시도"""


class LiveChatEndedError(YouTubeAPIError):
    """채팅이 더 이상 라이브가 아님 - 방송 종료 처리 대상"""


class LiveChatUnavailableError(BusinessLogicError):
    def __init__(self, video_id: str):
        super().__init__(
            "STREAM_001",
            "Video has no active live chat",
            {"video_id": video_id},
        )


class YouTubeClient:
    base_url = "https://www.googleapis.com/youtube/v3"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 10.0):
        self.api_key = api_key if api_key is not None else settings.YOUTUBE_API_KEY
        self.timeout = timeout

    async def _get(self, path: str, params: dict) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}/{path}", params={**params, "key": self.api_key}
                )
        except httpx.HTTPError as e:
            raise YouTubeAPIError(f"YouTube API transport error: {e}") from e

        if response.status_code != 200:
            self._raise_for_error(response)
        return response.json()

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        try:
            error = response.json().get("error", {})
        except ValueError:
            error = {}
        message = error.get("message") or response.text
        reasons = {item.get("reason") for item in error.get("errors", [])}
        if reasons & CHAT_ENDED_REASONS or "no longer live" in message:
            raise LiveChatEndedError(message)
        raise YouTubeAPIError(f"YouTube API error {response.status_code}: {message}")

    async def get_live_chat_id(self, video_id: str) -> str:
        data = await self._get(
            "videos", {"part": "liveStreamingDetails", "id": video_id}
        )
        items = data.get("items") or []
        chat_id = (
            items[0].get("liveStreamingDetails", {}).get("activeLiveChatId")
            if items
            else None
        )
        if not chat_id:
            raise LiveChatUnavailableError(video_id)
        return chat_id

    async def list_chat_messages(
        self, live_chat_id: str, page_token: Optional[str] = None
    ) -> ChatMessagePage:
        params = {"liveChatId": live_chat_id, "part": "snippet,authorDetails"}
        if page_token:
            params["pageToken"] = page_token
        data = await self._get("liveChat/messages", params)

        messages = []
        for item in data.get("items", []):
            author = item.get("authorDetails", {})
            snippet = item.get("snippet", {})
            if not author.get("channelId") or not snippet.get("publishedAt"):
                logger.debug(f"Skipping chat item without author/timestamp: {item.get('id')}")
                continue
            messages.append(
                ChatMessage(
                    author_channel_id=author["channelId"],
                    published_at=snippet["publishedAt"],
                    text=snippet.get("displayMessage") or "",
                )
            )

        return ChatMessagePage(
            messages=messages,
            next_page_token=data.get("nextPageToken"),
            polling_interval_ms=data.get("pollingIntervalMillis"),
        )
