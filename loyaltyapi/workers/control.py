import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from loyaltyapi.schemas.livestream import WorkerStatus
from loyaltyapi.workers.chat_worker import ChatPollWorker

logger = logging.getLogger(__name__)


class WorkerControl(ABC):
    """채팅 워커 수명 관리 - 관리자 화면의 start/stop/status"""

    @abstractmethod
    async def start(self) -> bool: ...

    @abstractmethod
    async def stop(self) -> bool: ...

    @abstractmethod
    def status(self) -> WorkerStatus: ...


class InProcessWorkerControl(WorkerControl):
    """워커를 현재 이벤트 루프의 asyncio task로 실행"""

    def __init__(self, worker_factory: Callable[[], ChatPollWorker] = ChatPollWorker):
        self.worker_factory = worker_factory
        self._worker: Optional[ChatPollWorker] = None
        self._task: Optional[asyncio.Task] = None

    def _running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> bool:
        if self._running():
            return False
        self._worker = self.worker_factory()
        self._task = asyncio.create_task(self._worker.run())
        logger.info("Chat worker task started")
        return True

    async def stop(self) -> bool:
        if not self._running():
            return False
        self._worker.stop()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task, self._worker = None, None
        logger.info("Chat worker task stopped")
        return True

    def status(self) -> WorkerStatus:
        return WorkerStatus.ONLINE if self._running() else WorkerStatus.OFFLINE
