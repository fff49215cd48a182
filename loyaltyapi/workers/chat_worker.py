"""
라이브 채팅 폴링 워커

주기적으로 active 방송의 채팅 메시지를 가져와 메시지마다 채팅 보상을 정산합니다.
한 번에 하나의 폴링만 실행되며, 실행 중에 도착한 폴링 요청은 건너뜁니다.

단독 실행: python -m loyaltyapi.workers.chat_worker
"""

import asyncio
import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from loyaltyapi.config import Settings, settings as default_settings
from loyaltyapi.core.exceptions import BaseAPIException
from loyaltyapi.database.connection import SessionLocal
from loyaltyapi.providers.youtube.client import (
    LiveChatEndedError,
    YouTubeAPIError,
    YouTubeClient,
)
from loyaltyapi.repositories.livestream_repository import LivestreamRepository
from loyaltyapi.schemas.livestream import ChatMessage
from loyaltyapi.services.chat_activity_service import ChatActivityService

logger = logging.getLogger(__name__)


class ChatPollWorker:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        youtube: Optional[YouTubeClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.youtube = youtube or YouTubeClient()
        self.settings = settings or default_settings
        self._lock = asyncio.Lock()
        self._stopping = False
        self._stream_id: Optional[int] = None
        self._page_token: Optional[str] = None

    @property
    def is_polling(self) -> bool:
        return self._lock.locked()

    async def poll_once(self) -> Optional[int]:
        """폴링 1회 - 지급 건수, 다른 폴링이 진행 중이면 None"""
        if self._lock.locked():
            logger.info("Chat poll already in flight; skipping")
            return None
        async with self._lock:
            return await self._poll()

    def _active_stream(self):
        with self.session_factory() as db:
            return LivestreamRepository(db).get_active()

    async def _poll(self) -> int:
        stream = await asyncio.to_thread(self._active_stream)

        if stream is None or not stream.live_chat_id:
            self._stream_id, self._page_token = None, None
            logger.debug("No active livestream; waiting")
            return 0

        if stream.id != self._stream_id:
            self._stream_id, self._page_token = stream.id, None

        try:
            page = await self.youtube.list_chat_messages(stream.live_chat_id, self._page_token)
        except LiveChatEndedError as e:
            logger.info(f"Live chat for stream {stream.id} ended ({e}); finishing stream")
            await asyncio.to_thread(self._finish_stream, stream.id)
            self._stream_id, self._page_token = None, None
            return 0
        except YouTubeAPIError as e:
            logger.warning(f"YouTube API error for stream {stream.id}: {e}")
            return 0

        self._page_token = page.next_page_token
        if not page.messages:
            return 0
        return await asyncio.to_thread(self._award_messages, page.messages)

    def _finish_stream(self, stream_id: int) -> None:
        with self.session_factory() as db:
            LivestreamRepository(db).finish(stream_id)
            db.commit()

    def _award_messages(self, messages: List[ChatMessage]) -> int:
        awarded = 0
        with self.session_factory() as db:
            service = ChatActivityService(db, settings=self.settings)
            for message in messages:
                try:
                    if service.award_chat_activity(
                        message.author_channel_id, message.published_at
                    ):
                        awarded += 1
                except (BaseAPIException, SQLAlchemyError) as e:
                    logger.error(
                        f"Chat award failed for channel {message.author_channel_id}: {e}"
                    )
        return awarded

    async def run(self) -> None:
        interval = self.settings.CHAT_POLL_INTERVAL_SECONDS
        logger.info(f"Chat worker started; polling every {interval}s")
        self._stopping = False
        try:
            while not self._stopping:
                try:
                    awarded = await self.poll_once()
                except Exception:
                    # 실패한 폴링은 기록만 하고 다음 주기에 재시도
                    logger.exception("Chat poll failed")
                    awarded = 0
                if awarded:
                    logger.info(f"Chat poll awarded {awarded} message(s)")
                await asyncio.sleep(interval)
        finally:
            logger.info("Chat worker stopped")

    def stop(self) -> None:
        self._stopping = True


def main() -> None:
    from loyaltyapi.logging_config import setup_logging

    setup_logging(default_settings.LOG_LEVEL)
    worker = ChatPollWorker()
    try:
        asyncio.run(worker.run())
    except KeyboardInterrupt:
        worker.stop()


if __name__ == "__main__":
    main()
