import logging

from sqlalchemy.orm import Session

from loyaltyapi.models.raffle import Raffle, RaffleStatus
from loyaltyapi.models.task import Task, TaskStatus
from loyaltyapi.models.user import User
from loyaltyapi.models.wallet import UserWallet
from loyaltyapi.schemas.admin import AdminDashboardResponse, DashboardStats
from loyaltyapi.services.history_service import HistoryService

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db: Session):
        self.db = db
        self.history_service = HistoryService(db)

    def get_dashboard_stats(self) -> AdminDashboardResponse:
        stats = DashboardStats(
            total_users=self.db.query(User).count(),
            active_tasks=self.db.query(Task)
            .filter(Task.status == TaskStatus.ACTIVE.value)
            .count(),
            active_raffles=self.db.query(Raffle)
            .filter(Raffle.status == RaffleStatus.ACTIVE.value)
            .count(),
            total_wallets=self.db.query(UserWallet).count(),
        )
        return AdminDashboardResponse(
            stats=stats, recent_activity=self.history_service.get_recent_activity(5)
        )
