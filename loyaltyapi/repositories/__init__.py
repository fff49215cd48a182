from .base import BaseRepository
from .user_repository import UserRepository
from .points_repository import PointsRepository
from .wallet_repository import WalletRepository
from .task_repository import TaskRepository, TaskCompletionRepository
from .raffle_repository import RaffleRepository
from .claim_code_repository import ClaimCodeRepository
from .tip_repository import TipRepository
from .livestream_repository import LivestreamRepository
from .activity_log_repository import ActivityLogRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PointsRepository",
    "WalletRepository",
    "TaskRepository",
    "TaskCompletionRepository",
    "RaffleRepository",
    "ClaimCodeRepository",
    "TipRepository",
    "LivestreamRepository",
    "ActivityLogRepository",
]
