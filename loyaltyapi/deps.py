"""
요청 단위 서비스 의존성

서비스는 요청마다 get_db로 연 세션 하나를 공유하고, 응답 후 세션이 닫힙니다.
설정/알림/유튜브 클라이언트 같은 싱글톤은 app.container에서 가져옵니다.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from loyaltyapi.database.session import get_db

# Services
from loyaltyapi.services.admin_service import AdminService
from loyaltyapi.services.claim_code_service import ClaimCodeService
from loyaltyapi.services.history_service import HistoryService
from loyaltyapi.services.livestream_service import LivestreamService
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.raffle_service import RaffleService
from loyaltyapi.services.task_service import TaskService
from loyaltyapi.services.tip_service import TipService
from loyaltyapi.services.user_service import UserService
from loyaltyapi.services.wallet_service import WalletService


def _services(request: Request):
    return request.app.container.services


def get_point_service(request: Request, db: Session = Depends(get_db)) -> PointService:
    return _services(request).point_service(db=db)


# 포인트를 정산하는 서비스는 내부 PointService도 같은 세션을 써야 함
def get_task_service(request: Request, db: Session = Depends(get_db)) -> TaskService:
    return _services(request).task_service(db=db, point_service__db=db)


def get_claim_code_service(request: Request, db: Session = Depends(get_db)) -> ClaimCodeService:
    return _services(request).claim_code_service(db=db, point_service__db=db)


def get_tip_service(request: Request, db: Session = Depends(get_db)) -> TipService:
    return _services(request).tip_service(db=db, point_service__db=db)


def get_raffle_service(request: Request, db: Session = Depends(get_db)) -> RaffleService:
    return _services(request).raffle_service(db=db, point_service__db=db)


def get_history_service(request: Request, db: Session = Depends(get_db)) -> HistoryService:
    return _services(request).history_service(db=db)


def get_wallet_service(request: Request, db: Session = Depends(get_db)) -> WalletService:
    return _services(request).wallet_service(db=db)


def get_user_service(request: Request, db: Session = Depends(get_db)) -> UserService:
    return _services(request).user_service(db=db)


def get_admin_service(request: Request, db: Session = Depends(get_db)) -> AdminService:
    return _services(request).admin_service(db=db)


def get_livestream_service(
    request: Request, db: Session = Depends(get_db)
) -> LivestreamService:
    return _services(request).livestream_service(db=db)
