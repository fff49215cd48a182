import asyncio
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from loyaltyapi.core.exceptions import NotFoundError
from loyaltyapi.models.livestream import LivestreamStatus
from loyaltyapi.providers.youtube.client import YouTubeClient
from loyaltyapi.repositories.livestream_repository import LivestreamRepository
from loyaltyapi.schemas.livestream import LivestreamResponse

logger = logging.getLogger(__name__)


class LivestreamService:
    """라이브 방송 등록 - active 방송은 항상 최대 1개"""

    def __init__(self, db: Session, youtube: Optional[YouTubeClient] = None):
        self.db = db
        self.stream_repo = LivestreamRepository(db)
        self.youtube = youtube or YouTubeClient()

    async def create_livestream(self, title: str, video_id: str) -> LivestreamResponse:
        live_chat_id = await self.youtube.get_live_chat_id(video_id)
        return await asyncio.to_thread(self._activate, title, video_id, live_chat_id)

    def _activate(self, title: str, video_id: str, live_chat_id: str) -> LivestreamResponse:
        """이전 active 방송을 모두 종료하고 새 방송을 active로 저장"""
        try:
            finished = self.stream_repo.finish_all_active()
            stream = self.stream_repo.create(
                title=title,
                youtube_video_id=video_id,
                live_chat_id=live_chat_id,
                status=LivestreamStatus.ACTIVE.value,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Livestream {stream.id} active (video={video_id}, chat={live_chat_id}); "
            f"finished {finished} previous stream(s)"
        )
        return stream

    def get_active(self) -> Optional[LivestreamResponse]:
        return self.stream_repo.get_active()

    def list_streams(self) -> List[LivestreamResponse]:
        return self.stream_repo.list_recent()

    def finish_stream(self, stream_id: int) -> LivestreamResponse:
        stream = self.stream_repo.finish(stream_id)
        if stream is None:
            raise NotFoundError(
                f"Livestream not found: {stream_id}", {"stream_id": stream_id}, "STREAM_404"
            )
        self.db.commit()
        logger.info(f"Livestream {stream_id} finished")
        return stream
