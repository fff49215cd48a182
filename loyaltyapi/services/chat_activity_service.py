import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from loyaltyapi.config import Settings, settings as default_settings
from loyaltyapi.models.points import LedgerSource, PointsLedger
from loyaltyapi.repositories.user_repository import UserRepository
from loyaltyapi.services.point_service import PointService
from loyaltyapi.utils.timezone_utils import ensure_utc

logger = logging.getLogger(__name__)


class ChatActivityService:
    """
    라이브 채팅 참여 보상

    (a) 첫 채팅 보너스: 사용자당 1회 (first_chat_claimed)
    (b) 쿨다운 보상: 마지막 지급 이후 CHAT_COOLDOWN_MINUTES 경과
    두 규칙이 한 메시지에서 모두 성립하면 합산해 한 번에 정산합니다.
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        point_service: Optional[PointService] = None,
    ):
        self.db = db
        self.settings = settings or default_settings
        self.user_repo = UserRepository(db)
        self.point_service = point_service or PointService(db, settings=self.settings)

    def award_chat_activity(
        self, channel_id: str, message_timestamp: datetime
    ) -> Optional[PointsLedger]:
        user_id = self.user_repo.get_id_by_channel(channel_id)
        if user_id is None:
            return None

        message_time = ensure_utc(message_timestamp)
        cooldown = timedelta(minutes=self.settings.CHAT_COOLDOWN_MINUTES)

        with self.point_service.settlement():
            user = self.point_service.points_repo.lock_user(user_id)
            if user.is_banned:
                return None

            points = 0
            first_chat = not user.first_chat_claimed
            if first_chat:
                points += self.settings.FIRST_CHAT_BONUS_POINTS

            last_awarded = ensure_utc(user.last_point_awarded_at)
            if last_awarded is None:
                cooldown_elapsed = not first_chat
            else:
                cooldown_elapsed = message_time - last_awarded >= cooldown
            if cooldown_elapsed:
                points += self.settings.CHAT_ACTIVITY_POINTS

            if points <= 0:
                return None

            reasons = []
            if first_chat:
                reasons.append("first chat bonus")
            if cooldown_elapsed:
                reasons.append("chat activity")
            entry = self.point_service.apply_delta(
                user_id,
                points,
                "Live chat: " + " + ".join(reasons),
                LedgerSource.CHAT_ACTIVITY,
            )

            # apply_delta가 행을 다시 읽었으므로 그 이후에 상태 플래그 갱신
            if first_chat:
                user.first_chat_claimed = True
            user.last_point_awarded_at = message_time
            self.db.flush()

        logger.info(f"Chat activity +{points} for user {user_id} ({channel_id})")
        return entry
