from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from loyaltyapi.database.connection import SessionLocal


def get_db() -> Iterator[Session]:
    """
    요청 단위 세션

    FastAPI가 요청마다 한 번 호출하므로 같은 요청의 인증/서비스는 세션을 공유하고,
    다른 요청과는 절대 공유하지 않습니다. 커밋되지 않은 작업은 닫을 때 버려집니다.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """스크립트용 - 블록이 끝나면 커밋, 예외 시 롤백"""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
