from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str

    # JWT Authentication
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Application
    APP_ENV: str = "development"
    APP_NAME: str = "Opportunity Board"
    APP_URL: str = "http://localhost:3000"
    # Verbose logging only; error responses are always the JSON envelope.
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Email Configuration
    EMAIL_NOTIFICATIONS_ENABLED: bool = True
    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    EMAIL_FROM: Optional[str] = None
    EMAIL_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False
    SMTP_TIMEOUT_SECONDS: int = 8

    # Telegram
    TELEGRAM_ENABLED: bool = False
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_BOT_USERNAME: Optional[str] = None
    TELEGRAM_WEBHOOK_SECRET: Optional[str] = None
    TELEGRAM_TIMEOUT_SECONDS: float = 10.0
    TELEGRAM_BIND_CODE_TTL_MINUTES: int = 15

    # Account security
    PASSWORD_RESET_TOKEN_TTL_MINUTES: int = 60
    TWO_FACTOR_CODE_TTL_MINUTES: int = 10
    # Wrong guesses allowed before the outstanding code is discarded.
    TWO_FACTOR_MAX_ATTEMPTS: int = 5

    # Engagement / applications
    # Age an unconfirmed application must reach before the user is prompted.
    UNCONFIRMED_APPLICATION_GRACE_MINUTES: int = 1440
    VIEW_HISTORY_PAGE_SIZE: int = 10

    # Catalog maintenance
    CRON_API_SECRET: Optional[str] = None
    POPULAR_VISIT_THRESHOLD: int = 300
    CLOSING_SOON_DAYS: int = 3
    NEW_OPPORTUNITY_DAYS: int = 7

    # Health
    HEALTH_CHECK_TIMEOUT_SECONDS: float = 5.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
