"""
초기 데이터 시드 스크립트
관리자 계정과 예시 태스크/래플/클레임 코드를 생성합니다.

사용법:
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=secret python scripts/seed_data.py
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from loyaltyapi.config import settings
from loyaltyapi.core.security import hash_password
from loyaltyapi.database.session import session_scope
from loyaltyapi.models import ClaimCode, Raffle, Task, TaskType, User, UserRole
from loyaltyapi.repositories.wallet_repository import WalletRepository


def seed_admin(db) -> None:
    email = os.environ.get("ADMIN_EMAIL", "admin@example.com")
    if db.query(User).filter(User.email == email).first():
        print(f"Admin {email} already exists")
        return

    admin = User(
        username=os.environ.get("ADMIN_USERNAME", "admin"),
        email=email,
        password_hash=hash_password(os.environ.get("ADMIN_PASSWORD", "change-me")),
        role=UserRole.ADMIN.value,
        points=0,
    )
    db.add(admin)
    db.flush()
    WalletRepository(db).create_default_wallets(admin.id, settings.WALLET_CURRENCIES)
    print(f"Created admin {email}")


def seed_examples(db) -> None:
    if db.query(Task).count() == 0:
        db.add_all(
            [
                Task(
                    title="Subscribe to our channel",
                    description="Open the channel page and subscribe",
                    reward=50,
                    task_type=TaskType.LINK_CLICK.value,
                    verification_url="https://www.youtube.com/",
                ),
                Task(
                    title="Share a screenshot",
                    description="Upload proof of sharing the stream",
                    reward=100,
                    task_type=TaskType.MANUAL.value,
                ),
            ]
        )
        print("Created example tasks")

    if db.query(Raffle).count() == 0:
        db.add(Raffle(title="Weekly raffle", reward="Gift card"))
        print("Created example raffle")

    if db.query(ClaimCode).count() == 0:
        db.add(ClaimCode(code="WELCOME", reward=25, max_claims=100))
        print("Created claim code WELCOME")


def main():
    with session_scope() as db:
        seed_admin(db)
        seed_examples(db)


if __name__ == "__main__":
    main()
