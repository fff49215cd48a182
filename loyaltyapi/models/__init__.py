# 모든 모델을 임포트해 Base.metadata에 등록

from .base import Base
from .user import User, UserRole
from .wallet import UserWallet
from .points import PointsLedger, LedgerSource, LedgerStatus
from .task import Task, TaskCompletion, TaskStatus, TaskType, CompletionStatus
from .raffle import Raffle, RaffleEntry, RaffleStatus
from .claim_code import ClaimCode, ClaimCodeRedemption, ClaimCodeStatus
from .tip import TipTransfer
from .livestream import Livestream, LivestreamStatus
from .activity_log import ActivityLog
