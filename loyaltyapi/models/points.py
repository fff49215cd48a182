"""
포인트 원장 데이터 모델

사용자 포인트의 모든 변동을 기록하는 원장(Ledger) 테이블을 정의합니다.
잔액 변경과 원장 기록은 정산 엔진이 하나의 트랜잭션으로 처리하므로
한 사용자의 success 항목 합계는 항상 users.points와 일치해야 합니다.
"""

import enum

from sqlalchemy import BigInteger, Column, ForeignKey, Index, String, Text

from loyaltyapi.models.base import BaseModel, BigIntPK


class LedgerSource(str, enum.Enum):
    """포인트 변동 출처"""

    TASK = "task"
    RAFFLE = "raffle"
    CLAIM_CODE = "claim_code"
    TIP = "tip"
    CHAT_ACTIVITY = "chat_activity"
    ADMIN = "admin"


class LedgerStatus(str, enum.Enum):
    SUCCESS = "success"
    PENDING = "pending"
    REJECTED = "rejected"


class PointsLedger(BaseModel):
    """
    포인트 원장 테이블 - 모든 포인트 거래 내역을 저장

    원칙:
    1. 불변성(Immutable): 한번 생성된 레코드는 수정되지 않음
    2. 완전성(Complete): 모든 포인트 변동사항이 기록됨
    3. 정합성(Integrity): balance_after 필드로 거래 직후 잔액 추적
    """

    __tablename__ = "points_ledger"
    __table_args__ = (Index("idx_points_ledger_user", "user_id", "id"),)

    # 기본 키 - 커밋 순서대로 증가하므로 사용자별 정렬 기준으로 사용
    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    user_id = Column(BigInteger, ForeignKey("users.id"), nullable=False)

    # 포인트 변동량 - 양수면 증가, 음수면 감소
    delta_points = Column(BigInteger, nullable=False)

    # 거래 사유 - 화면에 표시되는 설명 (예: "Claim code WELCOME")
    reason = Column(Text, nullable=False)

    source = Column(String(30), nullable=False)

    status = Column(String(20), nullable=False, default=LedgerStatus.SUCCESS.value)

    # 거래 후 잔액
    balance_after = Column(BigInteger, nullable=False)
