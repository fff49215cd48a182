import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="loyaltyapi-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'app.db')}"
os.environ.setdefault("SQS_NOTIFICATION_QUEUE", "")
os.environ.setdefault("SECRET_KEY", "test-secret")

from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from loyaltyapi.config import Settings  # noqa: E402
from loyaltyapi.models import Base, PointsLedger, User, UserRole  # noqa: E402
from loyaltyapi.models.points import LedgerSource, LedgerStatus  # noqa: E402
from loyaltyapi.services.notification_service import NotificationService  # noqa: E402
from loyaltyapi.services.point_service import PointService  # noqa: E402


@pytest.fixture(scope="session")
def engine():
    """
    파일 기반 SQLite 엔진

    모든 트랜잭션을 BEGIN IMMEDIATE로 시작해 쓰기 트랜잭션을 직렬화합니다.
    스레드 동시성 테스트에서 FOR UPDATE와 같은 대기 효과를 얻기 위함.
    """
    engine = create_engine(
        f"sqlite:///{os.path.join(_TEST_DIR, 'services.db')}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory

    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def notifier():
    return Mock(spec=NotificationService)


@pytest.fixture
def point_service(db, settings, notifier):
    return PointService(db, settings=settings, notifier=notifier)


@pytest.fixture
def create_user(db, settings):
    """사용자 생성 후 ID 반환 - 초기 잔액은 원장을 거쳐 지급해 정합성 유지"""

    def _create(username, points=0, role=UserRole.USER, channel_id=None, **extra):
        user = User(
            username=username,
            email=f"{username}@example.com",
            role=role.value,
            points=0,
            youtube_channel_id=channel_id,
            **extra,
        )
        db.add(user)
        db.commit()
        user_id = user.id
        if points:
            PointService(db, settings=settings, notifier=Mock()).settle_delta(
                user_id, points, "Seed balance", LedgerSource.ADMIN
            )
        return user_id

    return _create


@pytest.fixture
def assert_ledger_invariant(db):
    """모든 사용자에 대해 success 원장 합계 == users.points"""

    def _check():
        # 열린 트랜잭션(BEGIN IMMEDIATE)을 정리하고 최신 상태로 다시 읽음
        db.rollback()
        db.expire_all()
        for user in db.query(User).all():
            total = sum(
                row.delta_points
                for row in db.query(PointsLedger).filter(
                    PointsLedger.user_id == user.id,
                    PointsLedger.status == LedgerStatus.SUCCESS.value,
                )
            )
            assert total == user.points, f"user {user.id}: ledger={total} points={user.points}"
            assert user.points >= 0
        db.rollback()

    return _check


@pytest.fixture
def balance_of(db):
    def _balance(user_id):
        db.rollback()
        points = db.query(User.points).filter(User.id == user_id).scalar()
        db.rollback()
        return points

    return _balance


# ----------------------------------------------------------------------------
# 라우터 테스트
# ----------------------------------------------------------------------------


@pytest.fixture
def app():
    from loyaltyapi.main import create_app

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def login_as(app):
    """get_current_active_user를 고정 사용자로 대체"""
    from loyaltyapi.core.auth_middleware import get_current_active_user
    from loyaltyapi.schemas.user import User as UserSchema

    def _login(user_id=1, username="alice", role=UserRole.USER):
        user = UserSchema(id=user_id, username=username, role=role, points=0)
        app.dependency_overrides[get_current_active_user] = lambda: user
        return user

    return _login


@pytest.fixture
def override_service(app):
    """요청 단위 서비스 의존성(loyaltyapi.deps)을 Mock으로 대체"""
    from loyaltyapi import deps

    def _override(name, mock):
        app.dependency_overrides[getattr(deps, f"get_{name}")] = lambda: mock
        return mock

    return _override
