import logging
from typing import Optional

from pydantic import BaseModel

from loyaltyapi.config import Settings
from loyaltyapi.providers.queue.sqs import SQSClient

logger = logging.getLogger(__name__)


class NotificationService:
    """
    커밋 이후 알림 발행 (fire-and-forget)

    SQS_NOTIFICATION_QUEUE가 비어 있으면 로그만 남깁니다.
    발행 실패는 호출 측으로 전파하지 않습니다 - 이미 커밋된 정산을 되돌릴 수 없기 때문.
    """

    def __init__(self, settings: Settings, client: Optional[SQSClient] = None):
        self.queue_name = settings.SQS_NOTIFICATION_QUEUE
        self._client = client

    def _sqs(self) -> SQSClient:
        if self._client is None:
            self._client = SQSClient()
        return self._client

    def publish(self, event: BaseModel) -> bool:
        payload = event.model_dump()
        if not self.queue_name:
            logger.info(f"Notification (log-only): {payload}")
            return False
        try:
            self._sqs().send_message(self.queue_name, payload)
            return True
        except Exception as e:
            logger.warning(f"Failed to publish notification {payload}: {str(e)}")
            return False
