from .auth import TokenData, RegisterRequest, LoginRequest
from .user import User, RequestContext
from .points import PointsLedgerEntry, PointsTransactionResponse
from .task import TaskResponse, TaskCompletionResponse
from .raffle import RaffleResponse, TicketExchangeResponse
from .claim_code import ClaimCodeResponse
from .tip import TipResponse
from .history import HistoryItem, HistoryResponse
