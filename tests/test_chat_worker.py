import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from loyaltyapi.models.livestream import Livestream, LivestreamStatus
from loyaltyapi.providers.youtube.client import (
    LiveChatEndedError,
    YouTubeAPIError,
    YouTubeClient,
)
from loyaltyapi.schemas.livestream import ChatMessage, ChatMessagePage, WorkerStatus
from loyaltyapi.workers import chat_worker
from loyaltyapi.workers.chat_worker import ChatPollWorker
from loyaltyapi.workers.control import InProcessWorkerControl

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def youtube():
    return AsyncMock(spec=YouTubeClient)


@pytest.fixture
def worker(session_factory, youtube, settings):
    return ChatPollWorker(session_factory=session_factory, youtube=youtube, settings=settings)


@pytest.fixture
def active_stream(db):
    stream = Livestream(
        title="Friday stream",
        youtube_video_id="vid123",
        live_chat_id="chat123",
        status=LivestreamStatus.ACTIVE.value,
    )
    db.add(stream)
    db.commit()
    return stream.id


class TestChatPollWorker:
    """채팅 폴링 워커 테스트"""

    def test_poll_awards_each_message(
        self, worker, youtube, active_stream, create_user, balance_of, settings,
        assert_ledger_invariant,
    ):
        # Given
        alice = create_user("alice", channel_id="UC_alice")
        youtube.list_chat_messages.return_value = ChatMessagePage(
            messages=[
                ChatMessage(author_channel_id="UC_alice", published_at=NOW, text="hi"),
                ChatMessage(author_channel_id="UC_stranger", published_at=NOW, text="yo"),
            ],
            next_page_token="page-2",
        )

        # When
        awarded = asyncio.run(worker.poll_once())

        # Then
        assert awarded == 1
        assert balance_of(alice) == settings.FIRST_CHAT_BONUS_POINTS
        youtube.list_chat_messages.assert_awaited_once_with("chat123", None)
        assert_ledger_invariant()

    def test_next_poll_uses_page_token(self, worker, youtube, active_stream):
        youtube.list_chat_messages.return_value = ChatMessagePage(next_page_token="page-2")

        asyncio.run(worker.poll_once())
        asyncio.run(worker.poll_once())

        assert youtube.list_chat_messages.await_args.args == ("chat123", "page-2")

    def test_skipped_while_another_poll_runs(self, worker, youtube):
        async def scenario():
            async with worker._lock:
                assert worker.is_polling
                return await worker.poll_once()

        assert asyncio.run(scenario()) is None
        youtube.list_chat_messages.assert_not_awaited()

    def test_no_active_stream(self, worker, youtube):
        assert asyncio.run(worker.poll_once()) == 0
        youtube.list_chat_messages.assert_not_awaited()

    def test_chat_ended_finishes_stream(self, worker, youtube, active_stream, db):
        youtube.list_chat_messages.side_effect = LiveChatEndedError("The live chat is no longer live.")

        assert asyncio.run(worker.poll_once()) == 0

        db.rollback()
        db.expire_all()
        assert db.get(Livestream, active_stream).status == LivestreamStatus.FINISHED.value

    def test_api_error_keeps_stream_active(self, worker, youtube, active_stream, db):
        youtube.list_chat_messages.side_effect = YouTubeAPIError("quota exceeded")

        assert asyncio.run(worker.poll_once()) == 0

        db.rollback()
        db.expire_all()
        assert db.get(Livestream, active_stream).status == LivestreamStatus.ACTIVE.value

    def test_failed_tick_does_not_stop_loop(self, session_factory, youtube, settings):
        """DB 장애로 한 번 실패해도 다음 주기에 다시 폴링"""
        opened = []

        def flaky_factory():
            opened.append(1)
            if len(opened) == 1:
                raise OperationalError("SELECT 1", {}, Exception("db down"))
            worker.stop()
            return session_factory()

        worker = ChatPollWorker(
            session_factory=flaky_factory,
            youtube=youtube,
            settings=settings.model_copy(update={"CHAT_POLL_INTERVAL_SECONDS": 0}),
        )

        with patch.object(chat_worker.logger, "exception") as log_exception:
            asyncio.run(worker.run())

        assert len(opened) == 2
        log_exception.assert_called_once()


class TestYouTubeClient:
    def test_chat_ended_reason(self):
        response = httpx.Response(
            403,
            json={"error": {"message": "ended", "errors": [{"reason": "liveChatEnded"}]}},
        )

        with pytest.raises(LiveChatEndedError):
            YouTubeClient._raise_for_error(response)

    def test_other_errors(self):
        response = httpx.Response(500, text="oops")

        with pytest.raises(YouTubeAPIError) as exc_info:
            YouTubeClient._raise_for_error(response)
        assert not isinstance(exc_info.value, LiveChatEndedError)

    def test_list_chat_messages_skips_incomplete_items(self, monkeypatch):
        client = YouTubeClient(api_key="k")
        payload = {
            "nextPageToken": "t2",
            "pollingIntervalMillis": 5000,
            "items": [
                {
                    "id": "m1",
                    "snippet": {"publishedAt": "2026-03-01T12:00:00Z", "displayMessage": "hello"},
                    "authorDetails": {"channelId": "UC_a"},
                },
                {"id": "m2", "snippet": {}, "authorDetails": {"channelId": "UC_b"}},
            ],
        }
        monkeypatch.setattr(client, "_get", AsyncMock(return_value=payload))

        page = asyncio.run(client.list_chat_messages("chat123", "t1"))

        assert [m.author_channel_id for m in page.messages] == ["UC_a"]
        assert page.messages[0].published_at == NOW
        assert page.next_page_token == "t2"


class _IdleWorker:
    def __init__(self):
        self.stopped = False

    async def run(self):
        while True:
            await asyncio.sleep(3600)

    def stop(self):
        self.stopped = True


def test_in_process_worker_control():
    async def scenario():
        control = InProcessWorkerControl(worker_factory=_IdleWorker)
        assert control.status() == WorkerStatus.OFFLINE

        assert await control.start() is True
        assert await control.start() is False
        assert control.status() == WorkerStatus.ONLINE

        assert await control.stop() is True
        assert await control.stop() is False
        return control.status()

    assert asyncio.run(scenario()) == WorkerStatus.OFFLINE
