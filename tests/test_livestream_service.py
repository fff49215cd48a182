import asyncio
from unittest.mock import AsyncMock

import pytest

from loyaltyapi.core.exceptions import NotFoundError
from loyaltyapi.models.livestream import LivestreamStatus
from loyaltyapi.models.task import Task, TaskStatus
from loyaltyapi.providers.youtube.client import LiveChatUnavailableError, YouTubeClient
from loyaltyapi.services.admin_service import AdminService
from loyaltyapi.services.livestream_service import LivestreamService


@pytest.fixture
def youtube():
    client = AsyncMock(spec=YouTubeClient)
    client.get_live_chat_id.return_value = "chat-abc"
    return client


@pytest.fixture
def livestream_service(db, youtube):
    return LivestreamService(db, youtube=youtube)


class TestLivestreamService:
    """방송 등록 테스트"""

    def test_new_stream_finishes_previous(self, livestream_service, youtube):
        # Given
        first = asyncio.run(livestream_service.create_livestream("Morning", "vid-1"))

        # When
        second = asyncio.run(livestream_service.create_livestream("Evening", "vid-2"))

        # Then
        assert second.live_chat_id == "chat-abc"
        assert livestream_service.get_active().id == second.id
        statuses = {s.id: s.status for s in livestream_service.list_streams()}
        assert statuses == {
            first.id: LivestreamStatus.FINISHED.value,
            second.id: LivestreamStatus.ACTIVE.value,
        }

    def test_video_without_live_chat(self, livestream_service, youtube):
        youtube.get_live_chat_id.side_effect = LiveChatUnavailableError("vid-x")

        with pytest.raises(LiveChatUnavailableError):
            asyncio.run(livestream_service.create_livestream("Offline", "vid-x"))

        assert livestream_service.get_active() is None

    def test_finish_stream(self, livestream_service):
        stream = asyncio.run(livestream_service.create_livestream("Show", "vid-1"))

        finished = livestream_service.finish_stream(stream.id)

        assert finished.status == LivestreamStatus.FINISHED.value
        assert livestream_service.get_active() is None

    def test_finish_unknown_stream(self, livestream_service):
        with pytest.raises(NotFoundError):
            livestream_service.finish_stream(777)


def test_admin_dashboard_stats(db, create_user):
    create_user("alice")
    create_user("bob")
    db.add_all(
        [
            Task(title="A", reward=1, status=TaskStatus.ACTIVE.value),
            Task(title="B", reward=1, status=TaskStatus.INACTIVE.value),
        ]
    )
    db.commit()

    dashboard = AdminService(db).get_dashboard_stats()

    assert dashboard.stats.total_users == 2
    assert dashboard.stats.active_tasks == 1
    assert dashboard.stats.active_raffles == 0
    assert dashboard.recent_activity == []
