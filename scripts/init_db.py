import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text

from loyaltyapi.config import settings
from loyaltyapi.database.connection import engine
from loyaltyapi.models import Base


def init_db():
    """데이터베이스 초기화 (스키마 + 전체 테이블)"""
    try:
        if engine.dialect.name == "postgresql":
            with engine.connect() as conn:
                conn.execute(
                    text(f"CREATE SCHEMA IF NOT EXISTS {settings.POSTGRES_SCHEMA}")
                )
                conn.commit()

        Base.metadata.create_all(bind=engine)
        print(f"Database initialized: {len(Base.metadata.tables)} tables")

    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
