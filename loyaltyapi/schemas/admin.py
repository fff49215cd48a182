from pydantic import BaseModel
from typing import List

from loyaltyapi.schemas.history import ActivityLogItem


class DashboardStats(BaseModel):
    total_users: int = 0
    active_tasks: int = 0
    active_raffles: int = 0
    total_wallets: int = 0


class AdminDashboardResponse(BaseModel):
    stats: DashboardStats
    recent_activity: List[ActivityLogItem]
