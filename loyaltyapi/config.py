from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from urllib.parse import quote_plus


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="loyaltyapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Loyalty Points API"
    PROJECT_NAME: str = "Loyalty Points API"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DATABASE: str = "loyalty"
    POSTGRES_SCHEMA: str = "public"

    # 직접 지정 시 POSTGRES_* 조합보다 우선
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Security
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # OAuth / YouTube
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = ""
    YOUTUBE_API_KEY: str = ""

    # AWS (알림 큐)
    AWS_REGION: str = "ap-southeast-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    SQS_ENDPOINT_URL: Optional[str] = None
    SQS_NOTIFICATION_QUEUE: str = ""  # 비어 있으면 로그만 남김

    # Business Rules
    TICKET_PRICE_POINTS: int = 100  # 래플 티켓 1장 가격
    FIRST_CHAT_BONUS_POINTS: int = 10  # 라이브 채팅 첫 참여 보너스
    CHAT_ACTIVITY_POINTS: int = 10  # 쿨다운 경과 후 채팅 보상
    CHAT_COOLDOWN_MINUTES: int = 10
    CHAT_POLL_INTERVAL_SECONDS: int = 15
    WALLET_CURRENCIES: List[str] = ["IDR", "USDT"]
    HISTORY_MAX_LIMIT: int = 100
    TIP_HISTORY_LIMIT: int = 20


settings = Settings()
